"""
DivQuant CLI package.
"""

from divquant import __version__

__all__ = ['__version__']
