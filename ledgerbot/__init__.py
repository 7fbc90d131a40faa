"""Natural-language query resolution over accounting records."""

__version__ = "0.1.0"
