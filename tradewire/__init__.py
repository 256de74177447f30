"""Wire-level building blocks for trading protocols."""

__version__ = "0.1.0"