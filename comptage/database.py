"""Database connection.

One connection per run: the engine uses NullPool so closing the
connection closes the socket, and AUTOCOMMIT so an INSERT is durable as
soon as it returns, like a plain libpq session.

Statements wait through psycopg2's wait_select callback, so Ctrl-C
cancels a running statement instead of waiting for it to finish.
"""
import getpass
import logging
from typing import Callable, Optional

import psycopg2.extensions
import psycopg2.extras
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import DBAPIError, OperationalError
from sqlalchemy.pool import NullPool

from .config import ConnectionConfig, PasswordPrompt
from .errors import ConnectionFailed, Interrupted

logger = logging.getLogger(__name__)

# libpq messages meaning "try again with a password"
_PASSWORD_ERRORS = (
    "no password supplied",
    "password authentication failed",
    "fe_sendauth",
)

# interval and interval[] OIDs; cells keep the server's text ("151:30:00")
INTERVAL_OIDS = (1186, 1187)
INTERVAL_TEXT = psycopg2.extensions.new_type(
    INTERVAL_OIDS, "INTERVAL_TEXT", lambda value, cursor: value
)


def _register_interval_text(dbapi_conn, connection_record):
    psycopg2.extensions.register_type(INTERVAL_TEXT, dbapi_conn)


def get_engine(config: ConnectionConfig, password: Optional[str] = None) -> Engine:
    """Create a single-connection SQLAlchemy engine for *config*."""
    psycopg2.extensions.set_wait_callback(psycopg2.extras.wait_select)
    engine = create_engine(
        config.url(password),
        poolclass=NullPool,
        isolation_level="AUTOCOMMIT",
        connect_args={"fallback_application_name": config.application_name},
    )
    event.listen(engine, "connect", _register_interval_text)
    return engine


def _needs_password(exc: OperationalError) -> bool:
    message = str(exc.orig if exc.orig is not None else exc).lower()
    return any(marker in message for marker in _PASSWORD_ERRORS)


def _ask_password(prompt: Callable[[str], str]) -> str:
    try:
        return prompt("Password: ")
    except EOFError:
        raise ConnectionFailed("no password supplied") from None
    except KeyboardInterrupt:
        raise Interrupted("interrupted by user") from None


def connect(
    config: ConnectionConfig,
    prompt: Callable[[str], str] = getpass.getpass,
) -> Connection:
    """Open the connection, asking for a password when the policy allows it.

    Raises ConnectionFailed on any error, Interrupted on Ctrl-C at the prompt.
    """
    password = config.password
    if config.prompt_password is PasswordPrompt.ALWAYS and password is None:
        password = _ask_password(prompt)

    while True:
        engine = get_engine(config, password)
        try:
            conn = engine.connect()
        except OperationalError as e:
            if (
                password is None
                and config.prompt_password is not PasswordPrompt.NEVER
                and _needs_password(e)
            ):
                password = _ask_password(prompt)
                continue
            raise ConnectionFailed(_describe(e)) from e
        except DBAPIError as e:
            raise ConnectionFailed(_describe(e)) from e

        logger.debug(f"Connected to {engine.url.render_as_string(hide_password=True)}")
        return conn


def _describe(exc: DBAPIError) -> str:
    return str(exc.orig if exc.orig is not None else exc).strip()


def server_version(conn: Connection) -> tuple[int, ...]:
    """Version of the connected server, e.g. (16, 2)."""
    return tuple(conn.dialect.server_version_info or ())

