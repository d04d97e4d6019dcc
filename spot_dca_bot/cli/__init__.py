"""
Command-line interface module for the spot DCA bot.

This module provides the CLI for validating configuration, running the
strategy loop in paper mode, and inspecting persisted state.
"""

from .cli import main

__all__ = ["main"]
