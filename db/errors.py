"""
db/errors.py
------------
Exceptions raised while bootstrapping the database schema.
Callers should treat any SchemaError as fatal to startup.
"""


class SchemaError(Exception):
    """Base class for all schema bootstrap failures."""


class DatabaseConnectionError(SchemaError):
    """A connection could not be obtained from the pool or the server."""


class SchemaOrderError(SchemaError):
    """A statement list references an object before it is declared."""


class StatementError(SchemaError):
    """
    A schema statement failed for a reason other than "already exists".

    The whole transaction has been rolled back when this is raised.
    The driver error is available as ``__cause__``.
    """

    def __init__(self, statement, message: str):
        # A SchemaStatement, or a label such as "commit" for transaction steps
        self.statement = statement
        super().__init__(f"{statement} failed: {message}")


class AlreadyExistsError(SchemaError):
    """
    The object a statement creates is already in place.

    Raised by the statement runner and consumed by the initializer;
    it never reaches callers.
    """

    def __init__(self, statement):
        self.statement = statement
        super().__init__(f"{statement} already exists")
