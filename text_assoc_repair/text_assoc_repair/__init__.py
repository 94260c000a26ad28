"""
text_assoc_repair package.

Runtime helpers for the association repair entry point.
"""

__all__ = [
    "logger",
    "privileges",
]
