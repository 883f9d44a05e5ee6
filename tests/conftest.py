# -*- coding: utf-8 -*-
"""Pytest configuration for duckflight tests."""

import duckdb
import pyarrow as pa
import pytest

from duckflight.config import BridgeConfig


@pytest.fixture
def connection():
    """In-memory DuckDB connection."""
    con = duckdb.connect(":memory:")
    yield con
    con.close()


@pytest.fixture
def config():
    """Configuration isolated from the environment and config files."""
    return BridgeConfig(load_external=False)


@pytest.fixture
def orders(connection):
    """Connection with a small orders table."""
    connection.execute("""
        CREATE TABLE orders (
            id INTEGER,
            customer VARCHAR,
            amount DECIMAL(10, 2),
            placed DATE,
            shipped BOOLEAN
        )
    """)
    connection.execute("""
        INSERT INTO orders VALUES
            (1, 'alice', 150.25, DATE '2024-01-03', true),
            (2, 'bob', 50.00, DATE '2024-01-04', false),
            (3, 'alice', 200.10, DATE '2024-02-01', true)
    """)
    return connection


@pytest.fixture
def sample_arrow_batch():
    """Arrow RecordBatch shaped like an exported engine chunk."""
    return pa.RecordBatch.from_arrays(
        [
            pa.array([1, 2, 3], type=pa.int32()),
            pa.array(['a', 'b', None], type=pa.utf8()),
        ],
        names=['id', 'label'],
    )
