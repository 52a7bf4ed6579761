"""CLI module for tool adapters."""

from .main import main

__all__ = ["main"]
