"""Version information for the Sui flash-loan toolkit."""

__version__ = "0.1.0"
