"""Hook specifications for plugin managers."""

from infrastructure.hookspecs import notifications

__all__ = ["notifications"]
