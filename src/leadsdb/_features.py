"""
Runtime feature detection for optional extras.
"""

from __future__ import annotations


def _check_import(module_name: str) -> bool:
    """Check if a module is importable."""
    try:
        __import__(module_name)
        return True
    except ImportError:
        return False


# System keyring lookup for the API key (the ``keyring`` extra)
HAS_KEYRING: bool = _check_import("keyring")
