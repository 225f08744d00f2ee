"""
stackc Error Hierarchy
======================

This module defines the root of the exception hierarchy for stackc.
All exceptions inherit from StackcError, allowing callers to catch every
toolchain error with a single except clause if desired.

Exception Hierarchy
-------------------
StackcError (base)
└── CompilerError (see stackc.minic.errors)
    ├── LexError - unrecognised characters, literal overflow
    ├── ParseError - unexpected tokens
    └── CodeGenError - undeclared variables, internal consistency

Error messages follow this format:
    filename:line:column: error: description
        source_line_text
            ^ (pointer to error location)
    hint: suggestion for fixing (when available)
"""

from dataclasses import dataclass


# =============================================================================
# Base Exception Class
# =============================================================================

class StackcError(Exception):
    """
    Base exception for all stackc errors.

    All exceptions in the package inherit from this class:

        try:
            compile_source("int main() { return 1; }")
        except StackcError as e:
            print(f"Error: {e}")
    """
    pass


# =============================================================================
# Source Location Tracking
# =============================================================================

@dataclass(frozen=True)
class SourceLocation:
    """
    Represents a location in source code for error reporting.

    Attributes:
        filename: Name of the source file (or "<input>" for string input)
        line: Line number (1-indexed)
        column: Column number (1-indexed)
    """
    filename: str
    line: int
    column: int

    def __str__(self) -> str:
        """Format as 'filename:line:column' for error messages."""
        return f"{self.filename}:{self.line}:{self.column}"
