# -*- coding: utf-8 -*-
"""
Statement lifecycle.

A :class:`DuckDBStatement` owns one prepared engine handle and, once
executed, the schema and record batch of its latest result. Instances are
not thread-safe; callers give each thread its own statement and connection.
"""

import logging
from typing import Optional

import duckdb
import pyarrow as pa

from .config import BridgeConfig, get_config
from .engine import Parameters, PreparedStatement, prepare
from .errors import NotExecutedError, PrepareError, StatementClosedError
from .materializer import ResultMaterializer
from .schema_builder import build_schema, session_timezone

logger = logging.getLogger(__name__)


class DuckDBStatement:
    """Prepared DuckDB statement exposing its results as Arrow data."""

    def __init__(
        self,
        connection: duckdb.DuckDBPyConnection,
        prepared: PreparedStatement,
        config: Optional[BridgeConfig] = None,
    ):
        self._connection = connection
        self._prepared: Optional[PreparedStatement] = prepared
        self._config = config or get_config()
        self._materializer = ResultMaterializer(verify_chunks=self._config.verify_chunks)
        self._result: Optional[pa.RecordBatch] = None
        self._schema: Optional[pa.Schema] = None

    @classmethod
    def create(
        cls,
        connection: duckdb.DuckDBPyConnection,
        sql: str,
        config: Optional[BridgeConfig] = None,
    ) -> "DuckDBStatement":
        """
        Prepare ``sql`` on ``connection``.

        Raises:
            PrepareError: If the engine cannot prepare the statement
        """
        prepared = prepare(connection, sql)
        return cls(connection, prepared, config)

    def _handle(self) -> PreparedStatement:
        if self._prepared is None:
            raise StatementClosedError("Statement is closed")
        return self._prepared

    @property
    def sql(self) -> str:
        return self._handle().sql

    @property
    def schema(self) -> Optional[pa.Schema]:
        """Schema of the last materialized batch, if any."""
        return self._schema

    def bind(self, parameters: Optional[Parameters]) -> None:
        """Bind parameter values used by subsequent executions."""
        self._handle().bind(parameters)

    def execute(self) -> None:
        """
        Execute and materialize the result, replacing any previous one.

        Raises:
            ExecutionError: If the engine fails to produce a result
        """
        prepared = self._handle()
        self._result = None
        self._schema = None
        # Read before executing; any other query on the connection drops the pending result
        timezone = session_timezone(self._connection, self._config.default_timezone)

        cursor = prepared.execute(self._config.rows_per_chunk)
        result = self._materializer.materialize(cursor, timezone)

        self._result = result
        self._schema = result.schema
        logger.debug(f"Executed statement: {result.num_rows} row(s), {result.num_columns} column(s)")

    def execute_update(self) -> int:
        """Execute and report the number of rows in the resulting batch."""
        self.execute()
        return self._result.num_rows

    def get_result(self) -> pa.RecordBatch:
        """
        Return the last materialized batch.

        Raises:
            NotExecutedError: If the statement has not executed successfully
        """
        self._handle()
        if self._result is None:
            raise NotExecutedError(f"Statement has not been executed: '{self.sql}'")
        return self._result

    def get_schema(self) -> pa.Schema:
        """Schema declared by the prepared statement, without executing it."""
        prepared = self._handle()
        try:
            names, types = prepared.declared_columns()
        except duckdb.Error as e:
            raise PrepareError(prepared.sql, str(e)) from e
        timezone = session_timezone(self._connection, self._config.default_timezone)
        return build_schema(names, types, timezone)

    def get_native_handle(self) -> PreparedStatement:
        """Underlying engine handle, e.g. for parameter binding by the RPC layer."""
        return self._handle()

    def close(self) -> None:
        """Release the prepared handle and any materialized result."""
        self._prepared = None
        self._result = None
        self._schema = None

    @property
    def closed(self) -> bool:
        return self._prepared is None

    def __enter__(self) -> "DuckDBStatement":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def __repr__(self) -> str:
        if self._prepared is None:
            return "<DuckDBStatement closed>"
        return f"<DuckDBStatement {self._prepared.sql!r}>"
