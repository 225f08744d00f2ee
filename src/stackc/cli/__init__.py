"""
stackc Command-Line Interface
=============================

This package provides the command-line tool for stackc:

- **smcc**: mini-C compiler, token dumper and parse REPL

The tool is a Click-based CLI application with per-command help and
consistent exit codes (see stackc.cli.errors).
"""

__all__ = ["smcc"]
