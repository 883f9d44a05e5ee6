# -*- coding: utf-8 -*-
"""Tests for chunk export and result materialization."""

import datetime
import logging
from decimal import Decimal

import pyarrow as pa
import pytest

from duckflight.engine import EngineCursor
from duckflight.errors import ChunkConsumedError, ExecutionError
from duckflight.logical_types import LogicalType, LogicalTypeId
from duckflight.materializer import ResultChunk, ResultMaterializer, conform_column, empty_batch


def make_cursor(schema, batches, types):
    reader = pa.RecordBatchReader.from_batches(schema, batches)
    return EngineCursor("SELECT test", schema.names, types, reader)


class TestResultChunk:

    def test_export_hands_over_buffers_once(self, sample_arrow_batch):
        chunk = ResultChunk(sample_arrow_batch)
        columns = chunk.export()

        assert chunk.consumed
        assert columns[0].equals(sample_arrow_batch.column(0))
        with pytest.raises(ChunkConsumedError):
            chunk.export()

    def test_access_after_export_raises(self, sample_arrow_batch):
        chunk = ResultChunk(sample_arrow_batch)
        assert chunk.num_rows == 3
        chunk.export()

        with pytest.raises(ChunkConsumedError):
            chunk.num_rows
        with pytest.raises(ChunkConsumedError):
            chunk.verify()

    def test_verify_accepts_valid_chunk(self, sample_arrow_batch):
        ResultChunk(sample_arrow_batch).verify(full=True)


class TestConformColumn:

    def test_identical_type_is_passed_through(self):
        array = pa.array([1, 2], type=pa.int32())
        assert conform_column(array, pa.int32()) is array

    def test_unsigned_viewed_as_signed(self):
        array = pa.array([0, 42, None], type=pa.uint64())
        result = conform_column(array, pa.int64())

        assert result.type == pa.int64()
        assert result.to_pylist() == [0, 42, None]

    def test_decimal_reinterpreted_with_swapped_arguments(self):
        array = pa.array([Decimal("1.50")], type=pa.decimal128(10, 2))
        result = conform_column(array, pa.decimal128(2, 10))

        assert result.type == pa.decimal128(2, 10)
        assert result.buffers()[1] == array.buffers()[1]

    def test_null_placeholder(self):
        array = pa.array([[1], [2, 3]], type=pa.list_(pa.int32()))
        result = conform_column(array, pa.null())

        assert result.type == pa.null()
        assert len(result) == 2

    def test_null_source_gets_target_type(self):
        result = conform_column(pa.nulls(3), pa.decimal128(38, 0))

        assert result.type == pa.decimal128(38, 0)
        assert result.null_count == 3

    def test_time_rescaled_to_milliseconds(self):
        array = pa.array([1_500_000, None], type=pa.time64("us"))
        result = conform_column(array, pa.timestamp("ms"))

        assert result.type == pa.timestamp("ms")
        assert result.cast(pa.int64()).to_pylist() == [1500, None]

    def test_interval_to_duration(self):
        array = pa.array(
            [pa.MonthDayNano([1, 2, 3_000]), None],
            type=pa.month_day_nano_interval(),
        )
        result = conform_column(array, pa.duration("us"))

        assert result.type == pa.duration("us")
        assert result.to_pylist() == [datetime.timedelta(days=32, microseconds=3), None]

    def test_interval_components_respect_offset(self):
        array = pa.array(
            [
                pa.MonthDayNano([0, 1, 0]),
                None,
                pa.MonthDayNano([-1, 0, -2_000_000]),
                pa.MonthDayNano([0, 0, 5_000_000]),
            ],
            type=pa.month_day_nano_interval(),
        ).slice(1)
        result = conform_column(array, pa.duration("ms"))

        assert result.type == pa.duration("ms")
        assert result.cast(pa.int64()).to_pylist() == [None, -2_592_000_002, 5]

    def test_zone_aware_timestamp_to_decimal_fallback(self):
        array = pa.array([1_000_000], type=pa.timestamp("us", tz="UTC"))
        result = conform_column(array, pa.decimal128(38, 0))

        assert result.type == pa.decimal128(38, 0)
        assert result.to_pylist() == [Decimal(1_000_000)]

    def test_unconvertible_column_becomes_nulls(self, caplog):
        array = pa.array([{"a": 1}], type=pa.struct([("a", pa.int32())]))

        with caplog.at_level(logging.WARNING):
            result = conform_column(array, pa.date32())

        assert result.type == pa.date32()
        assert result.null_count == 1
        assert "returning nulls" in caplog.text


class TestResultMaterializer:

    def test_single_chunk(self, sample_arrow_batch):
        cursor = make_cursor(sample_arrow_batch.schema, [sample_arrow_batch], ["INTEGER", "VARCHAR"])
        result = ResultMaterializer().materialize(cursor)

        assert result.num_rows == 3
        assert result.schema.types == [pa.int32(), pa.utf8()]
        assert result.column(1).to_pylist() == ['a', 'b', None]

    def test_schema_matches_batch_columns(self):
        batch = pa.RecordBatch.from_arrays(
            [pa.array([7], type=pa.uint64()), pa.array([None], type=pa.null())],
            names=["u", "n"],
        )
        cursor = make_cursor(batch.schema, [batch], ["UBIGINT", '"NULL"'])
        result = ResultMaterializer().materialize(cursor)

        assert result.schema.types == [pa.int64(), pa.decimal128(38, 0)]
        assert [column.type for column in result.columns] == result.schema.types

    def test_empty_result_keeps_schema(self):
        schema = pa.schema([("id", pa.int32()), ("name", pa.utf8())])
        cursor = make_cursor(schema, [], ["INTEGER", "VARCHAR"])
        result = ResultMaterializer().materialize(cursor)

        assert result.num_rows == 0
        assert result.schema.names == ["id", "name"]
        assert result.schema.types == [pa.int32(), pa.utf8()]

    def test_statement_without_result_set(self):
        cursor = EngineCursor("SET threads = 1", [], [], None)
        result = ResultMaterializer().materialize(cursor)

        assert result.num_rows == 0
        assert result.num_columns == 0

    def test_only_first_chunk_is_materialized(self, sample_arrow_batch, caplog):
        cursor = make_cursor(
            sample_arrow_batch.schema,
            [sample_arrow_batch, sample_arrow_batch],
            ["INTEGER", "VARCHAR"],
        )
        with caplog.at_level(logging.WARNING):
            result = ResultMaterializer().materialize(cursor)

        assert result.num_rows == 3
        assert "exceeds one chunk" in caplog.text

    def test_fetch_error_raises_execution_error(self, mocker):
        reader = mocker.Mock()
        reader.read_next_batch.side_effect = pa.ArrowInvalid("Conversion Error: boom")
        cursor = EngineCursor("SELECT boom", ["x"], ["INTEGER"], reader)

        with pytest.raises(ExecutionError) as excinfo:
            ResultMaterializer().materialize(cursor)

        assert "boom" in str(excinfo.value)
        assert excinfo.value.sql == "SELECT boom"

    def test_column_count_mismatch(self, sample_arrow_batch):
        cursor = make_cursor(sample_arrow_batch.schema, [sample_arrow_batch], ["INTEGER"])
        cursor.names = ["id"]

        with pytest.raises(ExecutionError):
            ResultMaterializer().materialize(cursor)

    def test_timezone_reaches_metadata(self):
        batch = pa.RecordBatch.from_arrays(
            [pa.array([0], type=pa.timestamp("us", tz="UTC"))], names=["t"]
        )
        cursor = make_cursor(batch.schema, [batch], [LogicalType(LogicalTypeId.TIMESTAMP_TZ)])
        result = ResultMaterializer(verify_chunks=True).materialize(cursor, timezone="UTC")

        assert result.schema.field("t").metadata[b"timezone"] == b"UTC"


def test_empty_batch_for_schema():
    schema = pa.schema([("d", pa.decimal128(2, 10)), ("n", pa.null())])
    batch = empty_batch(schema)

    assert batch.num_rows == 0
    assert batch.schema == schema
