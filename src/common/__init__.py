"""
Common utilities shared by the state packages.

Modules:
- logger: structlog setup and method entry/exit markers
"""

__all__ = [
    "logger",
]
