# -*- coding: utf-8 -*-
"""
Engine-side type model.

DuckDB reports column types as ``DuckDBPyType`` objects, as SQL type names,
or, for results of non-query statements, only through their Arrow export.
All three are normalized into :class:`LogicalType`, a small immutable
value keyed by the closed :class:`LogicalTypeId` tag set.
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Tuple

import pyarrow as pa

logger = logging.getLogger(__name__)


class LogicalTypeId(Enum):
    """DuckDB logical type ids, spelled the way the engine prints them."""

    INVALID = "INVALID"
    SQLNULL = "NULL"
    UNKNOWN = "UNKNOWN"
    ANY = "ANY"
    USER = "USER"
    BOOLEAN = "BOOLEAN"
    TINYINT = "TINYINT"
    SMALLINT = "SMALLINT"
    INTEGER = "INTEGER"
    BIGINT = "BIGINT"
    HUGEINT = "HUGEINT"
    UHUGEINT = "UHUGEINT"
    UTINYINT = "UTINYINT"
    USMALLINT = "USMALLINT"
    UINTEGER = "UINTEGER"
    UBIGINT = "UBIGINT"
    VARINT = "VARINT"
    FLOAT = "FLOAT"
    DOUBLE = "DOUBLE"
    DECIMAL = "DECIMAL"
    CHAR = "CHAR"
    VARCHAR = "VARCHAR"
    BLOB = "BLOB"
    BIT = "BIT"
    DATE = "DATE"
    TIME = "TIME"
    TIMESTAMP_SEC = "TIMESTAMP_S"
    TIMESTAMP_MS = "TIMESTAMP_MS"
    TIMESTAMP = "TIMESTAMP"
    TIMESTAMP_NS = "TIMESTAMP_NS"
    TIMESTAMP_TZ = "TIMESTAMP WITH TIME ZONE"
    TIME_TZ = "TIME WITH TIME ZONE"
    INTERVAL = "INTERVAL"
    POINTER = "POINTER"
    VALIDITY = "VALIDITY"
    UUID = "UUID"
    STRUCT = "STRUCT"
    LIST = "LIST"
    MAP = "MAP"
    TABLE = "TABLE"
    ENUM = "ENUM"
    UNION = "UNION"
    ARRAY = "ARRAY"
    AGGREGATE_STATE = "AGGREGATE_STATE"
    LAMBDA = "LAMBDA"
    STRING_LITERAL = "STRING_LITERAL"
    INTEGER_LITERAL = "INTEGER_LITERAL"
    # Anything the engine reports that is not listed above
    OTHER = "OTHER"


# Alternative spellings accepted in SQL type names
_ALIASES = {
    "INT": LogicalTypeId.INTEGER,
    "INT4": LogicalTypeId.INTEGER,
    "INT32": LogicalTypeId.INTEGER,
    "SIGNED": LogicalTypeId.INTEGER,
    "INT1": LogicalTypeId.TINYINT,
    "INT8": LogicalTypeId.BIGINT,
    "INT64": LogicalTypeId.BIGINT,
    "LONG": LogicalTypeId.BIGINT,
    "INT2": LogicalTypeId.SMALLINT,
    "INT16": LogicalTypeId.SMALLINT,
    "SHORT": LogicalTypeId.SMALLINT,
    "INT128": LogicalTypeId.HUGEINT,
    "UINT8": LogicalTypeId.UTINYINT,
    "UINT16": LogicalTypeId.USMALLINT,
    "UINT32": LogicalTypeId.UINTEGER,
    "UINT64": LogicalTypeId.UBIGINT,
    "UINT128": LogicalTypeId.UHUGEINT,
    "BOOL": LogicalTypeId.BOOLEAN,
    "LOGICAL": LogicalTypeId.BOOLEAN,
    "REAL": LogicalTypeId.FLOAT,
    "FLOAT4": LogicalTypeId.FLOAT,
    "FLOAT8": LogicalTypeId.DOUBLE,
    "NUMERIC": LogicalTypeId.DECIMAL,
    "TEXT": LogicalTypeId.VARCHAR,
    "STRING": LogicalTypeId.VARCHAR,
    "BPCHAR": LogicalTypeId.CHAR,
    "BYTEA": LogicalTypeId.BLOB,
    "BINARY": LogicalTypeId.BLOB,
    "VARBINARY": LogicalTypeId.BLOB,
    "BITSTRING": LogicalTypeId.BIT,
    "DATETIME": LogicalTypeId.TIMESTAMP,
    "TIMESTAMP_US": LogicalTypeId.TIMESTAMP,
    "TIMESTAMPTZ": LogicalTypeId.TIMESTAMP_TZ,
    "TIMETZ": LogicalTypeId.TIME_TZ,
}

_BY_NAME = {type_id.value: type_id for type_id in LogicalTypeId if type_id is not LogicalTypeId.OTHER}
_BY_NAME.update(_ALIASES)

# DuckDB's DECIMAL without arguments
DEFAULT_DECIMAL_WIDTH = 18
DEFAULT_DECIMAL_SCALE = 3

_DECIMAL_ARGS = re.compile(r"\(\s*(\d+)\s*(?:,\s*(\d+)\s*)?\)")


@dataclass(frozen=True)
class LogicalType:
    """One column's type as understood by the engine."""

    id: LogicalTypeId
    name: str = ""
    width: Optional[int] = None
    scale: Optional[int] = None

    def __post_init__(self):
        if not self.name:
            object.__setattr__(self, "name", self._default_name())

    def _default_name(self) -> str:
        if self.id is LogicalTypeId.DECIMAL and self.width is not None:
            return f"DECIMAL({self.width},{self.scale or 0})"
        return self.id.value

    @classmethod
    def decimal(cls, width: int, scale: int) -> "LogicalType":
        return cls(LogicalTypeId.DECIMAL, width=width, scale=scale)

    @property
    def is_zone_aware(self) -> bool:
        return self.id in (LogicalTypeId.TIMESTAMP_TZ, LogicalTypeId.TIME_TZ)

    @classmethod
    def from_duckdb(cls, value: Any) -> "LogicalType":
        """
        Normalize an engine type.

        Args:
            value: ``DuckDBPyType``, a SQL type name, or a ``LogicalType``

        Returns:
            LogicalType. Unrecognized types come back with id ``OTHER``.
        """
        if isinstance(value, LogicalType):
            return value
        if isinstance(value, str):
            return parse_type_name(value)

        name = str(value)
        type_id = _BY_NAME.get(str(getattr(value, "id", "")).upper())
        if type_id is None:
            return parse_type_name(name)
        if type_id is LogicalTypeId.DECIMAL:
            width, scale = _decimal_args(name)
            return cls(type_id, name, width, scale)
        return cls(type_id, name)

    @classmethod
    def from_arrow(cls, data_type: pa.DataType) -> "LogicalType":
        """Recover the engine type behind a column DuckDB exported to Arrow."""
        if pa.types.is_decimal(data_type):
            return cls.decimal(data_type.precision, data_type.scale)
        if pa.types.is_timestamp(data_type):
            if data_type.tz is not None:
                return cls(LogicalTypeId.TIMESTAMP_TZ)
            return cls(_TIMESTAMP_UNITS[data_type.unit])
        if pa.types.is_dictionary(data_type):
            return cls(LogicalTypeId.ENUM)
        if pa.types.is_map(data_type):
            return cls(LogicalTypeId.MAP)
        if pa.types.is_fixed_size_list(data_type):
            return cls(LogicalTypeId.ARRAY)
        if pa.types.is_list(data_type) or pa.types.is_large_list(data_type):
            return cls(LogicalTypeId.LIST)
        if pa.types.is_struct(data_type):
            return cls(LogicalTypeId.STRUCT)
        if pa.types.is_union(data_type):
            return cls(LogicalTypeId.UNION)

        for predicate, type_id in _ARROW_PREDICATES:
            if predicate(data_type):
                return cls(type_id)
        return cls(LogicalTypeId.OTHER, str(data_type))


_TIMESTAMP_UNITS = {
    "s": LogicalTypeId.TIMESTAMP_SEC,
    "ms": LogicalTypeId.TIMESTAMP_MS,
    "us": LogicalTypeId.TIMESTAMP,
    "ns": LogicalTypeId.TIMESTAMP_NS,
}

_ARROW_PREDICATES = [
    (pa.types.is_null, LogicalTypeId.SQLNULL),
    (pa.types.is_boolean, LogicalTypeId.BOOLEAN),
    (pa.types.is_int8, LogicalTypeId.TINYINT),
    (pa.types.is_int16, LogicalTypeId.SMALLINT),
    (pa.types.is_int32, LogicalTypeId.INTEGER),
    (pa.types.is_int64, LogicalTypeId.BIGINT),
    (pa.types.is_uint8, LogicalTypeId.UTINYINT),
    (pa.types.is_uint16, LogicalTypeId.USMALLINT),
    (pa.types.is_uint32, LogicalTypeId.UINTEGER),
    (pa.types.is_uint64, LogicalTypeId.UBIGINT),
    (pa.types.is_float32, LogicalTypeId.FLOAT),
    (pa.types.is_float64, LogicalTypeId.DOUBLE),
    (pa.types.is_string, LogicalTypeId.VARCHAR),
    (pa.types.is_large_string, LogicalTypeId.VARCHAR),
    (pa.types.is_binary, LogicalTypeId.BLOB),
    (pa.types.is_large_binary, LogicalTypeId.BLOB),
    (pa.types.is_date32, LogicalTypeId.DATE),
    (pa.types.is_time64, LogicalTypeId.TIME),
    (pa.types.is_interval, LogicalTypeId.INTERVAL),
]


def _decimal_args(name: str) -> Tuple[int, int]:
    match = _DECIMAL_ARGS.search(name)
    if match is None:
        return DEFAULT_DECIMAL_WIDTH, DEFAULT_DECIMAL_SCALE
    width = int(match.group(1))
    scale = int(match.group(2)) if match.group(2) is not None else 0
    return width, scale


def parse_type_name(name: str) -> LogicalType:
    """Parse a DuckDB SQL type name such as ``DECIMAL(10,2)`` or ``INTEGER[]``."""
    text = name.strip()
    upper = text.upper()

    # Nested element suffix binds last: "STRUCT(a INT)[]" is a list
    if upper.endswith("]") and "[" in upper:
        suffix = upper[upper.rindex("["):]
        type_id = LogicalTypeId.LIST if suffix == "[]" else LogicalTypeId.ARRAY
        return LogicalType(type_id, text)

    base = upper.split("(", 1)[0].strip()
    base = re.sub(r"\s+", " ", base).strip("\"")
    type_id = _BY_NAME.get(base)

    if type_id is None:
        logger.debug(f"Unrecognized engine type name: {name!r}")
        return LogicalType(LogicalTypeId.OTHER, text)

    if type_id is LogicalTypeId.DECIMAL:
        width, scale = _decimal_args(text)
        return LogicalType(type_id, text, width, scale)

    return LogicalType(type_id, text)
