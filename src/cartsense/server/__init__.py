"""ASGI application factory and dependencies for the CartSense document API."""

from cartsense.server.app import app, create_app

__all__ = ["app", "create_app"]
