"""Exceptions raised by the listening log services."""

from __future__ import annotations


class ListenLogError(Exception):
    """Base class for errors surfaced to API callers."""


class LogSourceError(ListenLogError):
    """The log file exists but could not be read or written."""


class InvalidQueryError(ListenLogError):
    """A query parameter was malformed or the query was empty."""


class WriteValidationError(ListenLogError):
    """Raw content submitted for a log file is not valid JSON."""


class UnknownFileError(ListenLogError):
    """The requested file key is not one of the known log files."""
