"""Value-bet detection across two bookmaking feeds."""

__version__ = "0.1.0"
