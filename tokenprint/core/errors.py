"""
Error types for tokenprint.

All errors raised on purpose by the package derive from ``TokenprintError`` so
callers (and the CLI) can handle them uniformly.
"""

from typing import Optional, Any, Dict


class TokenprintError(Exception):
    """
    Base exception for all tokenprint errors.

    Provides common functionality for error tracking and reporting.
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        """
        Initialize error.

        Args:
            message: Error message
            details: Optional detailed error context
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}


class NoReferenceFound(TokenprintError):
    """
    Raised when a rename target does not resolve to any declaration.

    Typical causes are keywords, attribute or keyword-argument names, and
    names the front-end could not bind.
    """

    def __init__(self, message: str,
                 spelling: Optional[str] = None,
                 file_path: Optional[str] = None,
                 line_number: Optional[int] = None,
                 column: Optional[int] = None,
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)
        self.spelling = spelling
        self.file_path = file_path
        self.line_number = line_number
        self.column = column

        self.details.update({
            'spelling': spelling,
            'file_path': file_path,
            'line_number': line_number,
            'column': column
        })


class DuplicateKeyError(TokenprintError):
    """
    Raised when more than one fingerprint document exists for a single key.

    This is an internal consistency violation of the store, reported and
    never repaired automatically.
    """

    def __init__(self, message: str,
                 key_hash: Optional[int] = None,
                 key_value: Optional[str] = None,
                 count: int = 0,
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)
        self.key_hash = key_hash
        self.key_value = key_value
        self.count = count

        self.details.update({
            'key_hash': key_hash,
            'key_value': key_value,
            'count': count
        })


class StoreError(TokenprintError):
    """Raised when the backing fingerprint store fails a request."""

    def __init__(self, message: str,
                 operation: str = 'general',
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)
        self.operation = operation
        self.details['operation'] = operation


class CompilationError(TokenprintError):
    """
    Raised when a front-end cannot parse a source unit.

    Carries the position reported by the parser when available.
    """

    def __init__(self, message: str,
                 file_path: Optional[str] = None,
                 line_number: Optional[int] = None,
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)
        self.file_path = file_path
        self.line_number = line_number

        self.details.update({
            'file_path': file_path,
            'line_number': line_number
        })


class ConfigError(TokenprintError):
    """Raised when configuration values are invalid."""

    def __init__(self, message: str,
                 problems: Optional[list] = None,
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)
        self.problems = list(problems or [])
        self.details['problems'] = self.problems


def is_store_failure(error: Exception) -> bool:
    """Check if error comes from the fingerprint store layer."""
    return isinstance(error, (StoreError, DuplicateKeyError))
