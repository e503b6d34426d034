"""Periodic background worker with graceful shutdown."""
__version__ = "0.1.0"
