"""Insert and report operations.

Every operation either runs exactly one statement on the connection or,
in script mode, writes the SQL to *out* for psql to run later.
"""
import logging
import sys
from typing import Optional, TextIO

from sqlalchemy.engine import Connection
from sqlalchemy.exc import DBAPIError

from .errors import QueryFailed
from .formatter import render_table
from .models import Action, Options, QueryResult

logger = logging.getLogger(__name__)

COMPTAGE_TABLE = "public.comptage"
INSERT_TEMPLATE = "INSERT INTO " + COMPTAGE_TABLE + " (deb,fin) VALUES ({payload})"

# action -> (title, query)
REPORTS = {
    Action.BY_DAY: ("Jours", "SELECT * FROM public.jours_v"),
    Action.BY_MONTH: ("Mois", "SELECT * FROM public.mois"),
    Action.BY_WEEK: ("Semaines", "SELECT * FROM public.semaines"),
}


def insert_statement(payload: str) -> str:
    """Build the INSERT for a raw VALUES payload.

    The payload is embedded as-is: "'2022-01-01 08:00', '2022-01-01 12:00'"
    becomes the two column values. Nothing is quoted or escaped.
    """
    return INSERT_TEMPLATE.format(payload=payload)


def _failure(e: DBAPIError, query: str) -> QueryFailed:
    message = str(e.orig if e.orig is not None else e).strip()
    return QueryFailed(message, query)


def execute(
    conn: Optional[Connection],
    query: str,
    script: bool = False,
    out: Optional[TextIO] = None,
) -> None:
    """Run a statement and discard its result.

    Raises QueryFailed if the database rejects it.
    """
    out = out or sys.stdout
    if script:
        out.write(f"{query};\n")
        return

    logger.debug(f"Executing: {query}")
    try:
        conn.exec_driver_sql(query).close()
    except DBAPIError as e:
        raise _failure(e, query) from e


def fetch(conn: Connection, query: str) -> QueryResult:
    """Run a SELECT and collect columns and rows."""
    logger.debug(f"Fetching: {query}")
    try:
        result = conn.exec_driver_sql(query)
    except DBAPIError as e:
        raise _failure(e, query) from e

    if not result.returns_rows:
        result.close()
        raise QueryFailed("query did not return a result set", query)
    columns = list(result.keys())
    rows = [tuple(row) for row in result.fetchall()]
    return QueryResult(columns=columns, rows=rows)


def fetch_table(
    conn: Optional[Connection],
    label: str,
    query: str,
    script: bool = False,
    out: Optional[TextIO] = None,
) -> None:
    """Print a report as a titled table, or its SQL in script mode."""
    out = out or sys.stdout
    if script:
        out.write(f"\\echo {label}\n")
        out.write(f"{query};\n")
        return

    result = fetch(conn, query)
    logger.debug(f"{label}: {len(result)} rows")
    out.write(render_table(label, result) + "\n")


def run_action(
    conn: Optional[Connection],
    options: Options,
    out: Optional[TextIO] = None,
) -> bool:
    """Dispatch the parsed action. Returns False if there was none."""
    if options.action is Action.INSERT:
        execute(conn, insert_statement(options.payload), options.script, out)
        return True

    if options.action in REPORTS:
        label, query = REPORTS[options.action]
        fetch_table(conn, label, query, options.script, out)
        return True

    logger.error("No action defined")
    return False
