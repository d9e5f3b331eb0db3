"""
Cycle Spitter Command-Line Interface
====================================

This package provides the command-line tool:

- **cyclespit**: Schedule annotated 68000 source into exact-width scanlines

The tool is implemented as a Click-based CLI application sharing the
unified exit codes in cyclespitter.cli.errors.
"""

__all__ = ["cyclespit"]
