"""
AgroGHG command-line interface
"""

from agroghg.cli.main import app, main

__all__ = ["app", "main"]
