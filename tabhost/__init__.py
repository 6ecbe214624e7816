"""tabhost: multi-tenant HTTP control of headless browser tabs."""

__version__ = "0.1.0"
