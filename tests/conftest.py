"""
clientcomptage Test Configuration

Shared fixtures for all tests.
"""
import os
from datetime import date
from decimal import Decimal
from unittest.mock import MagicMock, patch

import pytest
from sqlalchemy import create_engine, event

from comptage.models import QueryResult


# =============================================================================
# FIXTURES: Environment
# =============================================================================

@pytest.fixture(autouse=True)
def isolated_config(tmp_path):
    """Point the config loader at an empty location, drop COMPTAGE__ overrides."""
    env = {k: v for k, v in os.environ.items() if not k.startswith("COMPTAGE__")}
    env["COMPTAGE_CONFIG"] = str(tmp_path / "missing.yml")
    with patch.dict(os.environ, env, clear=True):
        yield


# =============================================================================
# FIXTURES: Database
# =============================================================================

@pytest.fixture
def engine():
    """In-memory SQLite with an attached ``public`` schema holding the
    comptage table and stand-ins for the three report views."""
    eng = create_engine("sqlite:///:memory:")

    @event.listens_for(eng, "connect")
    def _attach_public(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("ATTACH DATABASE ':memory:' AS public")
        cursor.close()

    with eng.begin() as conn:
        conn.exec_driver_sql("CREATE TABLE public.comptage (deb TEXT, fin TEXT)")
        conn.exec_driver_sql("CREATE TABLE public.jours_v (jour TEXT, heures TEXT)")
        conn.exec_driver_sql("CREATE TABLE public.mois (mois TEXT, heures TEXT)")
        conn.exec_driver_sql("CREATE TABLE public.semaines (semaine INTEGER, heures TEXT)")
        conn.exec_driver_sql(
            "INSERT INTO public.jours_v VALUES "
            "('2022-01-03', '07:30:00'), ('2022-01-04', '08:00:00'), ('2022-01-05', NULL)"
        )
        conn.exec_driver_sql("INSERT INTO public.mois VALUES ('2022-01', '151:30:00')")
        conn.exec_driver_sql(
            "INSERT INTO public.semaines VALUES (1, '38:00:00'), (2, '35:30:00')"
        )
    yield eng
    eng.dispose()


@pytest.fixture
def db_conn(engine):
    with engine.connect() as conn:
        yield conn


@pytest.fixture
def mock_conn():
    """Connection double for paths where only close() matters."""
    conn = MagicMock(name="connection")
    conn.dialect.server_version_info = (16, 2)
    return conn


# =============================================================================
# FIXTURES: Results
# =============================================================================

@pytest.fixture
def sample_result() -> QueryResult:
    """Three days, three columns, mixed types."""
    return QueryResult(
        columns=["jour", "heures", "saisies"],
        rows=[
            (date(2022, 1, 3), "07:30:00", 2),
            (date(2022, 1, 4), "151:30:00", 2),
            (date(2022, 1, 5), None, Decimal("1")),
        ],
    )
