"""Errors raised while talking to the database."""


class ComptageError(Exception):
    """Base class for operational failures handled by the CLI."""


class ConnectionFailed(ComptageError):
    """The database connection could not be opened."""


class QueryFailed(ComptageError):
    """A statement failed; keeps the SQL text for the error report."""

    def __init__(self, message: str, query: str):
        super().__init__(message)
        self.message = message
        self.query = query


class Interrupted(ComptageError):
    """SIGINT was received while the connection was open."""
