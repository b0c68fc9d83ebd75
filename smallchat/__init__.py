"""A minimal TCP chat server, a raw-terminal chat client and their socket helpers."""

__version__ = "0.1.0"
__all__ = ["__version__"]