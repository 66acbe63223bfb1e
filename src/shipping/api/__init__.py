"""Shipping domain API package."""

from shipping.api.routes import carrier_router, label_router

__all__ = ["carrier_router", "label_router"]
