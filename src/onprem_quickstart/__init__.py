"""On-Premises Quick-Start installer package."""

__version__ = "1.0.0"
