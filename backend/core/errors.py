"""
Error taxonomy for the query pipeline.
The HTTP layer maps each class to a status code (see main.py).
"""


class QueryGateError(Exception):
    """Base class for every error the core surfaces to its caller."""

    status_code = 500


class InvalidArgument(QueryGateError):
    """Malformed or missing caller input (table name, database name, empty list)."""

    status_code = 400


class PermissionDenied(QueryGateError):
    """Statement category not allowed by the handle's policy."""

    status_code = 403


class NotFound(QueryGateError):
    status_code = 404


class ExecutionFailed(QueryGateError):
    """The database reported an error while running a permitted statement."""

    status_code = 422


class QueryTimeout(QueryGateError):
    status_code = 504


class ConnectionFailure(QueryGateError):
    """The pool could not obtain or use a connection."""

    status_code = 503


class ConfigurationError(QueryGateError):
    """Connection settings are incomplete; raised when a pool handle is created."""

    status_code = 500
