"""Command line interface"""

from .main import ArkCLI, main

__all__ = ['ArkCLI', 'main']
