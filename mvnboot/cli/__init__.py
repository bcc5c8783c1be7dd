"""
mvnboot CLI module.

This module provides the command-line interface for mvnboot.
"""

from .parser import CLI, main

__all__ = ["CLI", "main"]
