# -*- coding: utf-8 -*-
"""Tests for the duckflight command line."""

import pytest
from typer.testing import CliRunner

from duckflight import __version__
from duckflight.cli import app


@pytest.fixture
def runner():
    return CliRunner()


def test_version(runner):
    result = runner.invoke(app, ["version"])

    assert result.exit_code == 0
    assert __version__ in result.output


def test_query(runner):
    result = runner.invoke(app, ["query", "SELECT 42::UBIGINT AS answer", "-d", ":memory:"])

    assert result.exit_code == 0
    assert "answer" in result.output
    assert "int64" in result.output
    assert "42" in result.output


def test_query_with_parameters(runner):
    result = runner.invoke(app, ["query", "SELECT ?::VARCHAR AS greeting", "-p", "hello", "-d", ":memory:"])

    assert result.exit_code == 0
    assert "hello" in result.output


def test_schema(runner):
    result = runner.invoke(app, ["schema", "SELECT 1.5::DECIMAL(10,2) AS price", "-d", ":memory:"])

    assert result.exit_code == 0
    assert "price" in result.output
    assert "DECIMAL(10,2)" in result.output


def test_bad_sql_exits_with_error(runner):
    result = runner.invoke(app, ["query", "SELEC 1", "-d", ":memory:"])

    assert result.exit_code == 1
    assert "Error" in result.output
