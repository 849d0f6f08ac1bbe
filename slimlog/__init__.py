"""Structured JSON logging: loggers, levels, samplers, writers and stack traces."""

__version__ = "0.1.0"
__all__ = ["__version__"]