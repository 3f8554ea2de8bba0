"""Carrier performance intelligence: scores, insights and routing from shipment tracking."""

__version__ = "0.4.0"
