"""Sales performance analytics engine (product-group and customer key facts)."""

__version__ = "0.1.0"
