# -*- coding: utf-8 -*-
"""
Engine logical type -> Arrow type mapping.

The mapping is total: every :class:`LogicalTypeId` resolves to exactly one
Arrow type. Kinds Arrow cannot carry faithfully collapse into one of two
fallbacks, ``decimal128(38, 0)`` or the untyped ``null`` placeholder.
"""

import logging
from typing import Dict

import pyarrow as pa

from .logical_types import LogicalType, LogicalTypeId

logger = logging.getLogger(__name__)

DECIMAL_FALLBACK = pa.decimal128(38, 0)
NULL_PLACEHOLDER = pa.null()

_MAX_DECIMAL128_PRECISION = 38

_DIRECT: Dict[LogicalTypeId, pa.DataType] = {
    LogicalTypeId.TINYINT: pa.int8(),
    LogicalTypeId.SMALLINT: pa.int16(),
    LogicalTypeId.INTEGER: pa.int32(),
    LogicalTypeId.BIGINT: pa.int64(),
    LogicalTypeId.UTINYINT: pa.uint8(),
    LogicalTypeId.USMALLINT: pa.uint16(),
    LogicalTypeId.UINTEGER: pa.uint32(),
    # Narrowed to signed on purpose
    LogicalTypeId.UBIGINT: pa.int64(),
    LogicalTypeId.FLOAT: pa.float32(),
    LogicalTypeId.DOUBLE: pa.float64(),
    LogicalTypeId.BOOLEAN: pa.bool_(),
    LogicalTypeId.CHAR: pa.utf8(),
    LogicalTypeId.VARCHAR: pa.utf8(),
    LogicalTypeId.BLOB: pa.binary(),
    LogicalTypeId.DATE: pa.date32(),
    LogicalTypeId.TIME: pa.timestamp("ms"),
    LogicalTypeId.TIMESTAMP_MS: pa.timestamp("ms"),
    LogicalTypeId.TIMESTAMP: pa.timestamp("us"),
    LogicalTypeId.TIMESTAMP_SEC: pa.timestamp("s"),
    LogicalTypeId.TIMESTAMP_NS: pa.timestamp("ns"),
    # Engine does not document the interval unit; microseconds assumed
    LogicalTypeId.INTERVAL: pa.duration("us"),
}

_DECIMAL_FALLBACK_IDS = frozenset([
    LogicalTypeId.INVALID,
    LogicalTypeId.SQLNULL,
    LogicalTypeId.UNKNOWN,
    LogicalTypeId.ANY,
    LogicalTypeId.USER,
    LogicalTypeId.TIMESTAMP_TZ,
    LogicalTypeId.TIME_TZ,
    LogicalTypeId.HUGEINT,
])


def arrow_type_for(logical_type: LogicalType) -> pa.DataType:
    """
    Map one engine logical type to its Arrow type.

    Decimals keep the engine's wire convention: DECIMAL(width, scale)
    becomes ``decimal128(scale, width)``.
    """
    type_id = logical_type.id

    if type_id is LogicalTypeId.DECIMAL:
        return _swapped_decimal(logical_type)

    direct = _DIRECT.get(type_id)
    if direct is not None:
        return direct

    if type_id in _DECIMAL_FALLBACK_IDS:
        return DECIMAL_FALLBACK

    return NULL_PLACEHOLDER


def _swapped_decimal(logical_type: LogicalType) -> pa.DataType:
    width = logical_type.width
    scale = logical_type.scale or 0
    if width is None:
        return DECIMAL_FALLBACK

    # scale lands in the precision slot; Arrow needs 1..38 there
    if not 1 <= scale <= _MAX_DECIMAL128_PRECISION:
        logger.debug(
            f"{logical_type.name} has no Arrow decimal with precision {scale}, "
            f"using {DECIMAL_FALLBACK}"
        )
        return DECIMAL_FALLBACK

    return pa.decimal128(scale, width)
