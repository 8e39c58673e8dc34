"""
Utility modules for the CivicEye engine.
"""

from .formatting import format_currency, format_millions
from .config import Config

__all__ = ["format_currency", "format_millions", "Config"]
