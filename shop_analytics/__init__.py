"""
Storefront Sales & Inventory Analytics Engine

Turns raw order, order-line and variant records into time-windowed
dashboard metrics.
"""

__version__ = "1.0.0"
