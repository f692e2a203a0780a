"""telops - operational lifecycle engine for telecom network operations."""

__version__ = "0.1.0"
