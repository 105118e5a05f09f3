"""Tests for database layer (mocked psycopg2)."""

import os
from unittest.mock import MagicMock, patch

import pytest

from stayrate.infra.db import fetchone, get_conn, txn


class TestGetConnPasswordFallback:
    """DB_PASSWORD fallback in get_conn() - no real DB needed."""

    def test_dsn_without_password(self):
        env = {"DATABASE_URL": "dbname=db user=u host=h port=5432", "DB_PASSWORD": "from-env"}
        with patch.dict(os.environ, env, clear=True), \
             patch("stayrate.infra.db.psycopg2.connect", return_value=MagicMock()) as mock_connect:
            get_conn()
        mock_connect.assert_called_once_with(
            "dbname=db user=u host=h port=5432",
            application_name="stayrate",
            password="from-env",
        )

    def test_url_with_password_ignores_env(self):
        env = {"DATABASE_URL": "postgres://u:p@h/db", "DB_PASSWORD": "from-env"}
        with patch.dict(os.environ, env, clear=True), \
             patch("stayrate.infra.db.psycopg2.connect", return_value=MagicMock()) as mock_connect:
            get_conn()
        mock_connect.assert_called_once_with("postgres://u:p@h/db", application_name="stayrate")

    def test_missing_database_url(self):
        with patch.dict(os.environ, {}, clear=True):
            with pytest.raises(RuntimeError, match="DATABASE_URL"):
                get_conn()


class TestTxn:
    def test_commits_on_success(self):
        conn = MagicMock()

        with txn(conn) as cur:
            cur.execute("SELECT 1")

        conn.commit.assert_called_once()
        conn.rollback.assert_not_called()
        conn.close.assert_not_called()

    def test_rolls_back_on_exception(self):
        conn = MagicMock()

        with pytest.raises(ValueError):
            with txn(conn):
                raise ValueError("rollback test")

        conn.rollback.assert_called_once()
        conn.commit.assert_not_called()

    def test_owns_and_closes_new_connection(self):
        conn = MagicMock()
        with patch("stayrate.infra.db.get_conn", return_value=conn):
            with txn():
                pass
        conn.close.assert_called_once()


class TestFetchone:
    def test_returns_first_row(self):
        cur = MagicMock()
        cur.fetchone.return_value = (42,)

        assert fetchone(cur, "SELECT %s::int", (42,)) == (42,)
        cur.execute.assert_called_once_with("SELECT %s::int", (42,))
