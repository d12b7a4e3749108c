"""
helm-installer CLI module.

This module provides the command-line interface for helm-installer.
"""

from .parser import CLI, main

__all__ = ["CLI", "main"]
