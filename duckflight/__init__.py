# -*- coding: utf-8 -*-
"""duckflight - DuckDB statements exposed as Arrow record batches."""

from .config import BridgeConfig, get_config, init_config
from .engine import EngineCursor, PreparedStatement, prepare
from .errors import (
    BridgeError,
    ChunkConsumedError,
    ExecutionError,
    NotExecutedError,
    PrepareError,
    StatementClosedError,
)
from .logical_types import LogicalType, LogicalTypeId
from .materializer import ResultChunk, ResultMaterializer
from .schema_builder import build_schema, session_timezone
from .statement import DuckDBStatement
from .type_mapper import DECIMAL_FALLBACK, NULL_PLACEHOLDER, arrow_type_for

__version__ = "0.1.0"
__all__ = [
    # Statement lifecycle
    'DuckDBStatement',
    'PreparedStatement',
    'EngineCursor',
    'prepare',
    # Type conversion
    'LogicalType',
    'LogicalTypeId',
    'arrow_type_for',
    'build_schema',
    'session_timezone',
    'DECIMAL_FALLBACK',
    'NULL_PLACEHOLDER',
    # Materialization
    'ResultChunk',
    'ResultMaterializer',
    # Configuration
    'BridgeConfig',
    'get_config',
    'init_config',
    # Errors
    'BridgeError',
    'PrepareError',
    'ExecutionError',
    'NotExecutedError',
    'ChunkConsumedError',
    'StatementClosedError',
]
