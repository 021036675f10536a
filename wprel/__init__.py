"""Release pipeline for WordPress plugins."""

__version__ = "0.1.0"
