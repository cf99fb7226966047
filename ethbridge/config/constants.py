"""
Constants.

External endpoints, chain parameters and workflow identifiers.
"""

from decimal import Decimal


# External endpoints
COINGECKO_ETH_INR_URL = (
    "https://api.coingecko.com/api/v3/simple/price?ids=ethereum&vs_currencies=inr"
)
INFURA_MAINNET_URL = "https://mainnet.infura.io/v3"
OPENSERV_BASE_URL = "https://api.openserv.ai/v1"

# Timeouts
DEFAULT_HTTP_TIMEOUT_SECONDS = 15.0
DEFAULT_TX_RECEIPT_TIMEOUT_SECONDS = 180

# Chain
WEI_PER_ETH = Decimal(10 ** 18)
DEFAULT_ETH_TRANSFER_GAS = 21_000

# Precision
ETH_QUANTUM = Decimal("0.00000001")  # 8 decimal places
INR_QUANTUM = Decimal("0.01")

# Workflow
WORKFLOW_NAME = "upi_lite_to_eth"
SIMULATED_HASH_PREFIX = "sim_"
SIMULATED_HASH_SUFFIX_LENGTH = 9

# Transaction history paging
DEFAULT_HISTORY_LIMIT = 20
MAX_HISTORY_LIMIT = 100

# HTTP
SIGNATURE_HEADER = "X-Signature"
