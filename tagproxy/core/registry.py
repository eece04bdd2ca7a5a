"""Gateway registry for breaking circular imports.

Routes look the gateway up here instead of importing the main module.
"""

# Global gateway instance - set by main.py (or a test harness) during startup
gateway = None


def set_gateway(gateway_instance):
    """Set the global gateway instance."""
    global gateway
    gateway = gateway_instance


def get_gateway():
    """Get the global gateway instance."""
    if gateway is None:
        raise RuntimeError("Gateway not initialized. Did you call set_gateway?")
    return gateway
