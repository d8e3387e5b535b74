# stocks/models/__init__.py

from .stock import Stock

__all__ = ["Stock"]
