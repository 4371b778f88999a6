"""Twinscan Shared Module.

This package contains shared constants, logging helpers and error handling used across Twinscan.
"""

__all__ = ["constants", "errors", "logging"]
