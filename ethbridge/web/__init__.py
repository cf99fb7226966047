"""HTTP surface."""

from ethbridge.web.app import SERVICES_KEY, create_app

__all__ = ["SERVICES_KEY", "create_app"]
