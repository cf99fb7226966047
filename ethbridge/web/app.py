"""
HTTP application.

Endpoints:
- GET /health - service status
- GET /price - current ETH price in INR
- GET /calculate?amount= - INR to ETH conversion
- POST /webhook/agent - remote agent completion callback
"""

import json
from decimal import Decimal, InvalidOperation

from aiohttp import web
from loguru import logger
from pydantic import ValidationError

from ethbridge.config.constants import SIGNATURE_HEADER
from ethbridge.initialization.services import Services
from ethbridge.utils.exceptions import (
    ConfigError,
    EthBridgeError,
    NotInitializedError,
    PriceFetchError,
    UserNotFoundError,
    is_client_error,
)
from ethbridge.utils.signatures import verify_signature


SERVICES_KEY = web.AppKey("services", Services)


def _error(message: str, status: int) -> web.Response:
    return web.json_response({"error": message}, status=status)


def error_status(exc: EthBridgeError) -> int:
    """
    HTTP status for a bridge error.

    Args:
        exc: Raised error

    Returns:
        Status code
    """
    if isinstance(exc, UserNotFoundError):
        return 404
    if is_client_error(exc):
        return 400
    if isinstance(exc, (NotInitializedError, ConfigError)):
        return 503
    if isinstance(exc, PriceFetchError):
        return 502
    return 500


@web.middleware
async def error_middleware(request: web.Request, handler) -> web.StreamResponse:
    """Render bridge errors as JSON bodies."""
    try:
        return await handler(request)
    except web.HTTPException:
        raise
    except EthBridgeError as e:
        status = error_status(e)
        if status >= 500:
            logger.error(f"{request.method} {request.path} failed: {e}")
        return _error(str(e), status)
    except Exception:
        logger.exception(f"Unhandled error in {request.method} {request.path}")
        return _error("Internal server error", 500)


async def health_handler(request: web.Request) -> web.Response:
    """
    Health check endpoint.

    Returns:
        JSON response with integration status
    """
    services = request.app[SERVICES_KEY]
    return web.json_response(
        {
            "status": "healthy",
            "web3_initialized": services.wallet_service.initialized,
            "agent_enabled": services.agent_client.enabled,
        }
    )


async def price_handler(request: web.Request) -> web.Response:
    """Current ETH price in INR."""
    services = request.app[SERVICES_KEY]
    price = await services.wallet_service.get_eth_price_in_inr()
    return web.json_response({"ethPrice": str(price), "currency": "INR"})


async def calculate_handler(request: web.Request) -> web.Response:
    """INR to ETH conversion for the `amount` query parameter."""
    raw = request.query.get("amount")
    if raw is None:
        return _error("Query parameter 'amount' is required", 400)
    try:
        amount = Decimal(raw)
    except InvalidOperation:
        return _error("Amount must be a number", 400)
    if not amount.is_finite() or amount <= 0:
        return _error("Amount must be positive", 400)

    services = request.app[SERVICES_KEY]
    quote = await services.wallet_service.calculate_eth_from_inr(amount)
    return web.json_response(
        {
            "amountINR": str(quote.inr_amount),
            "ethAmount": str(quote.eth_amount),
            "ethPrice": str(quote.eth_price),
        }
    )


async def agent_webhook_handler(request: web.Request) -> web.Response:
    """
    Agent completion callback.

    When a webhook secret is configured the raw body must carry a valid
    HMAC-SHA256 signature in the signature header.
    """
    services = request.app[SERVICES_KEY]
    body = await request.read()

    secret = services.settings.webhook_secret
    if secret and not verify_signature(
        body, request.headers.get(SIGNATURE_HEADER), secret
    ):
        logger.warning("Rejected agent callback with invalid signature")
        return _error("Invalid signature", 401)

    try:
        data = json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError):
        return _error("Body must be valid JSON", 400)
    if not isinstance(data, dict):
        return _error("Body must be a JSON object", 400)

    try:
        result = await services.purchase_workflow.handle_webhook_callback(data)
    except ValidationError as e:
        return _error(f"Invalid callback: {e.error_count()} validation error(s)", 400)
    except ValueError as e:
        return _error(str(e), 400)

    return web.json_response(result)


def create_app(services: Services) -> web.Application:
    """
    Build the HTTP application.

    Args:
        services: Initialized services

    Returns:
        aiohttp application
    """
    app = web.Application(middlewares=[error_middleware])
    app[SERVICES_KEY] = services
    app.router.add_get("/health", health_handler)
    app.router.add_get("/price", price_handler)
    app.router.add_get("/calculate", calculate_handler)
    app.router.add_post("/webhook/agent", agent_webhook_handler)

    async def on_cleanup(app: web.Application) -> None:
        await app[SERVICES_KEY].close()

    app.on_cleanup.append(on_cleanup)
    return app
