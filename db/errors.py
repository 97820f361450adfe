class StatementBuildError(RuntimeError):
    """A statement was assembled in a way that must never reach the database."""


class StorageError(RuntimeError):
    """The database rejected or failed a statement. The driver error is chained as __cause__."""
