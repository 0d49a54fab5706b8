"""Time ranges, entity ids, query conditions and shell completion for a monitoring backend's command line."""

__version__ = "0.1.0"
__all__ = ["__version__"]