"""Configuration observation and status-condition helpers for a cluster authentication operator."""

__version__ = "0.1.0"

__all__ = [
    "arguments",
    "conditions",
    "config",
    "customroute",
    "listers",
    "observers",
    "templates",
]