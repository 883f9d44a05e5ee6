# -*- coding: utf-8 -*-
"""
DuckDB engine adapter.

Wraps the prepare / execute / fetch capability of a DuckDB connection.
Nothing here interprets SQL; parsing, planning and execution all happen
inside the engine.
"""

import logging
from typing import Any, List, Mapping, Optional, Sequence, Tuple, Union

import duckdb
import pyarrow as pa

from .errors import ExecutionError, PrepareError
from .logical_types import LogicalType

logger = logging.getLogger(__name__)

Parameters = Union[Sequence[Any], Mapping[str, Any]]
Columns = Tuple[List[str], List[Any]]

# Statements that report the number of rows they changed
_MODIFYING = frozenset(["INSERT", "UPDATE", "DELETE"])

_COUNT = (["Count"], ["BIGINT"])
_SUCCESS = (["Success"], ["BOOLEAN"])

# Output shape DuckDB's binder gives statements that do not return query rows
_FIXED_COLUMNS = {
    "INSERT": _COUNT,
    "UPDATE": _COUNT,
    "DELETE": _COUNT,
    "COPY": _COUNT,
    "CREATE": _COUNT,
    "EXPLAIN": (["explain_key", "explain_value"], ["VARCHAR", "VARCHAR"]),
    "DROP": _SUCCESS,
    "ALTER": _SUCCESS,
    "TRANSACTION": _SUCCESS,
    "SET": _SUCCESS,
    "LOAD": _SUCCESS,
    "VACUUM": _SUCCESS,
    "ATTACH": _SUCCESS,
    "DETACH": _SUCCESS,
    "EXPORT": _SUCCESS,
}


def _strip_terminator(query: str) -> str:
    return query.strip().rstrip(";").rstrip()


def _tokens(query: str) -> List[Tuple[str, Any]]:
    """Split ``query`` into (text, token type) pairs using the engine's tokenizer."""
    tokens = duckdb.tokenize(query)
    result = []
    for index, (start, token_type) in enumerate(tokens):
        end = tokens[index + 1][0] if index + 1 < len(tokens) else len(query)
        result.append((query[start:end].strip(), token_type))
    return result


def _call_as_select(query: str) -> str:
    # CALL f(...) is SELECT * FROM f(...)
    start = duckdb.tokenize(query)[1][0]
    return f"SELECT * FROM {query[start:]}"


def _has_returning(query: str) -> bool:
    return any(
        token_type == duckdb.token_type.keyword and text.upper() == "RETURNING"
        for text, token_type in _tokens(query)
    )


class EngineCursor:
    """An executed statement: runtime output shape plus its chunk reader."""

    def __init__(
        self,
        sql: str,
        names: List[str],
        types: List[Any],
        reader: Optional[pa.RecordBatchReader],
    ):
        self.sql = sql
        self.names = names
        self.types = types
        self._reader = reader

    def fetch_chunk(self) -> Optional[pa.RecordBatch]:
        """
        Fetch the next chunk of rows.

        Returns:
            The chunk, or None once the result is exhausted

        Raises:
            ExecutionError: If the engine fails while producing the chunk
        """
        if self._reader is None:
            return None
        try:
            return self._reader.read_next_batch()
        except StopIteration:
            self._reader = None
            return None
        except (duckdb.Error, pa.ArrowException) as e:
            self._reader = None
            raise ExecutionError(str(e), self.sql) from e


class PreparedStatement:
    """
    Engine handle for one parsed statement and its bound parameters.

    DuckDB's Python API has no standalone prepared-statement object, so the
    handle keeps the parsed statement and re-submits it to the connection on
    each execute; the engine caches the plan.

    Queries, and CALL statements rewritten as queries, run as relations.
    Everything else runs through ``connection.execute``.
    """

    def __init__(self, connection: duckdb.DuckDBPyConnection, sql: str, statement: Any):
        self.connection = connection
        self.sql = sql
        self.query = _strip_terminator(statement.query)
        self.statement_type = statement.type
        self.parameter_names = sorted(statement.named_parameters)
        self.parameters: Optional[Parameters] = None

        kind = self.statement_type.name
        if kind == "SELECT":
            self.relation_query: Optional[str] = self.query
        elif kind == "CALL":
            self.relation_query = _call_as_select(self.query)
        else:
            self.relation_query = None
        self.returning = kind in _MODIFYING and _has_returning(self.query)

    @property
    def is_query(self) -> bool:
        return self.relation_query is not None

    @property
    def parameter_count(self) -> int:
        return len(self.parameter_names)

    def bind(self, parameters: Optional[Parameters]) -> None:
        """Bind positional (sequence) or named (mapping) parameter values."""
        if parameters is None:
            self.parameters = None
        elif isinstance(parameters, Mapping):
            self.parameters = dict(parameters)
        elif isinstance(parameters, (str, bytes)):
            raise TypeError("Parameters must be a sequence or a mapping, not a string")
        else:
            self.parameters = list(parameters)

    def clear_parameters(self) -> None:
        self.parameters = None

    def _placeholder_parameters(self) -> Parameters:
        # Positional markers are numbered "1", "2", ... by the parser
        if all(name.isdigit() for name in self.parameter_names):
            return [None] * max(int(name) for name in self.parameter_names)
        return {name: None for name in self.parameter_names}

    def _planning_parameters(self) -> Optional[Parameters]:
        """Bound values, or NULL placeholders when nothing is bound yet."""
        if not self.parameter_names:
            return None
        if self.parameters is not None:
            return self.parameters
        return self._placeholder_parameters()

    def _relation(self, query: str, parameters: Optional[Parameters]) -> duckdb.DuckDBPyRelation:
        if self.parameter_names:
            return self.connection.sql(query, params=parameters)
        return self.connection.sql(query)

    def _returned_columns(self) -> Columns:
        # RETURNING lists are only known once planned; run and discard
        self.connection.execute("BEGIN TRANSACTION")
        try:
            self.connection.execute(self.query, self._planning_parameters())
            schema = self.connection.to_arrow_reader(1).schema
        finally:
            self.connection.execute("ROLLBACK")
        return list(schema.names), [LogicalType.from_arrow(field.type) for field in schema]

    def declared_columns(self) -> Columns:
        """
        Output column names and engine types, without running the statement.

        Statement kinds with a fixed output shape (row counts, success
        flags, plans) declare that shape. DML with RETURNING runs inside a
        transaction that is rolled back. Other kinds declare no columns.
        """
        if self.is_query:
            if self.parameter_names:
                # Parameterized relations are materialized eagerly; keep that empty
                relation = self._relation(
                    f"SELECT * FROM (\n{self.relation_query}\n) AS declared LIMIT 0",
                    self._planning_parameters(),
                )
            else:
                relation = self._relation(self.relation_query, None)
            return list(relation.columns), list(relation.types)

        if self.returning:
            return self._returned_columns()

        names, types = _FIXED_COLUMNS.get(self.statement_type.name, ([], []))
        return list(names), list(types)

    def validate(self) -> None:
        """
        Bind and plan the statement without running it.

        Raises:
            duckdb.Error: If the engine cannot plan the statement
        """
        if self.is_query:
            self.declared_columns()
        elif self.statement_type.name in _MODIFYING:
            self.connection.execute(f"EXPLAIN {self.query}", self._planning_parameters())

    def execute(self, rows_per_chunk: int) -> EngineCursor:
        """
        Run the statement with the bound parameters.

        Args:
            rows_per_chunk: Maximum rows per fetched chunk

        Raises:
            ExecutionError: If the engine rejects or fails the statement
        """
        try:
            if self.is_query:
                relation = self._relation(self.relation_query, self.parameters)
                names = list(relation.columns)
                types = list(relation.types)
                reader = relation.to_arrow_reader(rows_per_chunk)
                return EngineCursor(self.sql, names, types, reader)

            self.connection.execute(self.query, self.parameters)
            if self.connection.description is None:
                return EngineCursor(self.sql, [], [], None)
            reader = self.connection.to_arrow_reader(rows_per_chunk)
        except duckdb.Error as e:
            raise ExecutionError(str(e), self.sql) from e

        # DB-API type codes are lossy; non-query results describe themselves in Arrow
        names = list(reader.schema.names)
        types = [LogicalType.from_arrow(field.type) for field in reader.schema]
        return EngineCursor(self.sql, names, types, reader)


def prepare(connection: duckdb.DuckDBPyConnection, sql: str) -> PreparedStatement:
    """
    Parse and plan ``sql`` on ``connection``.

    Raises:
        PrepareError: On syntax or binding errors, empty input, or more
            than one statement
    """
    try:
        statements = connection.extract_statements(sql)
    except duckdb.Error as e:
        raise PrepareError(sql, str(e)) from e

    if not statements:
        raise PrepareError(sql, "No statement to prepare!")
    if len(statements) > 1:
        raise PrepareError(sql, "Cannot prepare multiple statements at once!")

    try:
        prepared = PreparedStatement(connection, sql, statements[0])
        # Binding resolves catalog references without running the statement
        prepared.validate()
    except duckdb.Error as e:
        raise PrepareError(sql, str(e)) from e

    logger.debug(
        f"Prepared {prepared.statement_type} statement with "
        f"{prepared.parameter_count} parameter(s)"
    )
    return prepared
