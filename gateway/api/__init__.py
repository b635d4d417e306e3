"""
HTTP surface of the content gateway.
"""

from gateway.api.server import GatewayServer, create_app

__all__ = ["GatewayServer", "create_app"]
