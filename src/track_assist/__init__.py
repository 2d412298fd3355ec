"""Local-first application activity timeline."""

__version__ = "0.1.0"
