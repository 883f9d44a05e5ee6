# -*- coding: utf-8 -*-
"""
Result materialization.

Turns an executed engine cursor into one Arrow record batch. DuckDB hands
its chunk over through the Arrow C stream interface, so column buffers
arrive without copying; they are only rewritten for the columns whose
mapped Arrow type deliberately differs from what the engine exported.
"""

import logging
from typing import List, Optional, Tuple

import pyarrow as pa
import pyarrow.compute as pc

from .engine import EngineCursor
from .errors import ChunkConsumedError, ExecutionError
from .schema_builder import build_schema

logger = logging.getLogger(__name__)

_UNIT_FACTORS = {"s": 1, "ms": 1_000, "us": 1_000_000, "ns": 1_000_000_000}

# DuckDB counts an interval month as 30 days
_MICROS_PER_DAY = 86_400_000_000
_DAYS_PER_MONTH = 30


class ResultChunk:
    """
    One chunk of engine rows awaiting export.

    Export is a one-time handoff: afterwards the chunk no longer owns its
    buffers and every access raises ``ChunkConsumedError``.
    """

    def __init__(self, batch: pa.RecordBatch):
        self._batch: Optional[pa.RecordBatch] = batch

    @property
    def consumed(self) -> bool:
        return self._batch is None

    def _owned(self) -> pa.RecordBatch:
        if self._batch is None:
            raise ChunkConsumedError("Chunk buffers were already exported")
        return self._batch

    @property
    def num_rows(self) -> int:
        return self._owned().num_rows

    @property
    def num_columns(self) -> int:
        return self._owned().num_columns

    def verify(self, full: bool = False) -> None:
        """Check buffer consistency; ``full`` also validates every value."""
        batch = self._owned()
        try:
            batch.validate(full=full)
        except pa.ArrowInvalid as e:
            raise ExecutionError(f"Corrupt result chunk: {e}") from e

    def export(self) -> List[pa.Array]:
        """Hand the column buffers over and release the chunk."""
        columns = list(self._owned().columns)
        self._batch = None
        return columns


def _bit_width(data_type: pa.DataType) -> Optional[int]:
    try:
        return data_type.bit_width
    except ValueError:
        return None


def _is_temporal_int64(data_type: pa.DataType) -> bool:
    return (
        pa.types.is_timestamp(data_type)
        or pa.types.is_duration(data_type)
        or pa.types.is_time64(data_type)
    )


def _rescale(array: pa.Array, target: pa.DataType) -> pa.Array:
    """Convert between 64-bit temporal types with different units."""
    source_factor = _UNIT_FACTORS[array.type.unit]
    target_factor = _UNIT_FACTORS[target.unit]
    values = array.view(pa.int64())
    if target_factor > source_factor:
        values = pc.multiply(values, target_factor // source_factor)
    elif source_factor > target_factor:
        values = pc.divide(values, source_factor // target_factor)
    return values.cast(pa.int64()).view(target)


def _interval_components(array: pa.Array) -> Tuple[pa.Array, pa.Array, pa.Array]:
    """Months, days and nanoseconds of a month_day_nano interval column."""
    # Each value is laid out as int32 months, int32 days, int64 nanoseconds
    data = array.buffers()[1]
    slots = array.offset + len(array)
    as_int32 = pa.FixedSizeListArray.from_arrays(
        pa.Array.from_buffers(pa.int32(), slots * 4, [None, data]), 4
    ).slice(array.offset, len(array))
    as_int64 = pa.FixedSizeListArray.from_arrays(
        pa.Array.from_buffers(pa.int64(), slots * 2, [None, data]), 2
    ).slice(array.offset, len(array))
    months = pc.list_element(as_int32, 0).cast(pa.int64())
    days = pc.list_element(as_int32, 1).cast(pa.int64())
    nanos = pc.list_element(as_int64, 1)
    return months, days, nanos


def _interval_to_duration(array: pa.Array, target: pa.DataType) -> pa.Array:
    months, days, nanos = _interval_components(array)
    total_days = pc.add(pc.multiply(months, _DAYS_PER_MONTH), days)
    micros = pc.add(pc.multiply(total_days, _MICROS_PER_DAY), pc.divide(nanos, 1_000))
    micros = pc.if_else(pc.is_valid(array), micros, pa.scalar(None, type=pa.int64()))
    return _rescale(micros.view(pa.duration("us")), target)


def conform_column(array: pa.Array, target: pa.DataType) -> pa.Array:
    """
    Present an exported column as the mapped Arrow type.

    Identical types pass through untouched. Otherwise a zero-copy view is
    preferred, then a unit rescale or cast. Columns that cannot be
    represented become nulls of the target type.
    """
    source = array.type
    if source == target:
        return array

    if pa.types.is_null(target):
        return pa.nulls(len(array))
    if pa.types.is_null(source):
        return pa.nulls(len(array), type=target)

    if _is_temporal_int64(source) and _is_temporal_int64(target):
        return _rescale(array, target)

    if pa.types.is_interval(source) and pa.types.is_duration(target):
        return _interval_to_duration(array, target)

    width = _bit_width(source)
    if width is not None and width == _bit_width(target) and width >= 8:
        try:
            return array.view(target)
        except (pa.ArrowInvalid, pa.ArrowNotImplementedError):
            pass

    try:
        return array.cast(target, safe=False)
    except (pa.ArrowInvalid, pa.ArrowNotImplementedError):
        pass

    if width == 64:
        try:
            return array.view(pa.int64()).cast(target, safe=False)
        except (pa.ArrowInvalid, pa.ArrowNotImplementedError):
            pass

    logger.warning(f"Cannot present {source} column as {target}, returning nulls")
    return pa.nulls(len(array), type=target)


def empty_batch(schema: pa.Schema) -> pa.RecordBatch:
    return pa.RecordBatch.from_arrays(
        [pa.array([], type=field.type) for field in schema],
        schema=schema,
    )


class ResultMaterializer:
    """Materializes one executed statement into a single record batch."""

    def __init__(self, verify_chunks: bool = False):
        self.verify_chunks = verify_chunks

    def materialize(self, cursor: EngineCursor, timezone: Optional[str] = None) -> pa.RecordBatch:
        """
        Build the result batch for ``cursor``.

        Args:
            cursor: Executed engine cursor
            timezone: Session timezone for zone-aware column metadata

        Returns:
            Record batch whose schema is the runtime-derived schema

        Raises:
            ExecutionError: If fetching fails or the chunk is inconsistent
        """
        schema = build_schema(cursor.names, cursor.types, timezone)

        batch = cursor.fetch_chunk()
        if batch is None:
            logger.debug("Statement produced no rows")
            return empty_batch(schema)

        chunk = ResultChunk(batch)
        chunk.verify(full=self.verify_chunks)

        if chunk.num_columns != len(schema):
            raise ExecutionError(
                f"Result chunk has {chunk.num_columns} columns, "
                f"expected {len(schema)}",
                cursor.sql,
            )

        columns = chunk.export()
        conformed = [
            conform_column(column, field.type)
            for column, field in zip(columns, schema)
        ]
        result = pa.RecordBatch.from_arrays(conformed, schema=schema)

        if cursor.fetch_chunk() is not None:
            logger.warning(
                f"Result exceeds one chunk; only the first {result.num_rows} "
                f"rows were materialized"
            )

        return result
