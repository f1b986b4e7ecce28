"""
CartSense offline shopping-list package.

The package keeps a local replica of the shopping list and saved meals, records
mutations made while offline, and replays them against the remote document store
once connectivity returns.
"""

__all__ = ["__version__"]

__version__ = "0.1.0"
