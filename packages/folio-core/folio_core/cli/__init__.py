"""
folio CLI - inspect how a plugin declaration resolves.

Plugin Commands:
- folio plugins init - Write a starter plugins.yaml
- folio plugins list [--config <path>] - Show the resolved plugin order
- folio plugins api [--config <path>] - Show the merged api surface
"""

from .main import cli

__all__ = ["cli"]
