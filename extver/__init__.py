"""extver: version reconciliation for independently published extensions."""

__version__ = "0.4.0"
