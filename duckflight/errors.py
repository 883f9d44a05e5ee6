# -*- coding: utf-8 -*-
"""Exceptions raised by the statement bridge."""

from typing import Optional


class BridgeError(Exception):
    """Base exception for duckflight operations"""
    pass


class PrepareError(BridgeError):
    """Raised when the engine cannot parse or plan a statement."""

    def __init__(self, sql: str, diagnostic: str):
        self.sql = sql
        self.diagnostic = diagnostic
        super().__init__(f"Can't prepare statement: '{sql}' - Error: {diagnostic}")


class ExecutionError(BridgeError):
    """Raised when the engine fails while executing or fetching."""

    def __init__(self, diagnostic: str, sql: Optional[str] = None):
        self.sql = sql
        self.diagnostic = diagnostic
        if sql is None:
            message = diagnostic
        else:
            message = f"Can't execute statement: '{sql}' - Error: {diagnostic}"
        super().__init__(message)


class NotExecutedError(BridgeError):
    """Raised when a result is requested before a successful execute."""
    pass


class ChunkConsumedError(BridgeError):
    """Raised when an engine chunk is accessed after its buffers were exported."""
    pass


class StatementClosedError(BridgeError):
    """Raised when a closed statement is used."""
    pass
