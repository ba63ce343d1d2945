"""Carrier adapter registry: pluggable shipping carrier integration."""

import os

_carrier_instance = None


def get_carrier():
    """Return the configured carrier adapter (singleton).

    ``CARRIER_ADAPTER`` selects the adapter; only ``fake`` ships today.
    """
    global _carrier_instance
    if _carrier_instance is None:
        adapter = os.environ.get("CARRIER_ADAPTER", "fake")
        if adapter == "fake":
            from storefront.shipping.carrier.fake_adapter import FakeCarrier

            _carrier_instance = FakeCarrier()
        else:
            raise ValueError(f"Unknown carrier adapter: {adapter}")
    return _carrier_instance


def set_carrier(carrier):
    global _carrier_instance
    _carrier_instance = carrier


def reset_carrier():
    """Drop the singleton so the next call rebuilds it."""
    global _carrier_instance
    _carrier_instance = None
