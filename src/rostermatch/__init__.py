"""Player/agency matching core: position taxonomy, directory search, access gate and application workflow."""

__version__ = "0.1.0"
