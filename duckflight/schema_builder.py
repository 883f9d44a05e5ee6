# -*- coding: utf-8 -*-
"""Build Arrow schemas from engine column names and types."""

import logging
from typing import Any, Dict, Optional, Sequence

import duckdb
import pyarrow as pa

from .logical_types import LogicalType, LogicalTypeId
from .type_mapper import arrow_type_for

logger = logging.getLogger(__name__)

# Arrow Flight SQL column metadata keys
TYPE_NAME_KEY = "ARROW:FLIGHT:SQL:TYPE_NAME"
PRECISION_KEY = "ARROW:FLIGHT:SQL:PRECISION"
SCALE_KEY = "ARROW:FLIGHT:SQL:SCALE"
TIMEZONE_KEY = "timezone"


def column_metadata(logical_type: LogicalType, timezone: Optional[str] = None) -> Dict[str, str]:
    """Per-column metadata describing the engine-side type."""
    metadata = {TYPE_NAME_KEY: logical_type.name}

    if logical_type.id is LogicalTypeId.DECIMAL and logical_type.width is not None:
        metadata[PRECISION_KEY] = str(logical_type.width)
        metadata[SCALE_KEY] = str(logical_type.scale or 0)

    if timezone and logical_type.is_zone_aware:
        metadata[TIMEZONE_KEY] = timezone

    return metadata


def build_field(name: str, logical_type: Any, timezone: Optional[str] = None) -> pa.Field:
    logical_type = LogicalType.from_duckdb(logical_type)
    return pa.field(
        name,
        arrow_type_for(logical_type),
        nullable=True,
        metadata=column_metadata(logical_type, timezone),
    )


def build_schema(
    names: Sequence[str],
    logical_types: Sequence[Any],
    timezone: Optional[str] = None,
) -> pa.Schema:
    """
    Derive the Arrow schema for a statement's output.

    Args:
        names: Column names in output order
        logical_types: Engine types (``LogicalType``, ``DuckDBPyType`` or names)
        timezone: Session timezone attached to zone-aware columns

    Returns:
        Arrow schema with one field per column, in the same order
    """
    if len(names) != len(logical_types):
        raise ValueError(
            f"Column name/type count mismatch: {len(names)} names, {len(logical_types)} types"
        )

    return pa.schema([
        build_field(name, logical_type, timezone)
        for name, logical_type in zip(names, logical_types)
    ])


def session_timezone(connection: duckdb.DuckDBPyConnection, default: str = "UTC") -> str:
    """Read the connection's TimeZone setting."""
    try:
        row = connection.execute("SELECT current_setting('TimeZone')").fetchone()
    except duckdb.Error as e:
        # Without the ICU extension the setting does not exist
        logger.debug(f"TimeZone setting unavailable, using {default}: {e}")
        return default

    if row is None or not row[0]:
        return default
    return str(row[0])
