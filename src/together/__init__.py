"""Together API: member verification and credential recovery backend."""

__version__ = "0.1.0"
