"""In-memory metrics server and an agent that reports process metrics to it."""

__version__ = "0.1.0"
__all__ = ["__version__"]