"""W3C Trace Context propagation for structured request logging."""

__version__ = "0.1.0"
