from db.builders import DeleteBuilder, InsertBuilder, SelectBuilder, UpdateBuilder, quote
from db.errors import StatementBuildError, StorageError

__all__ = [
    "DeleteBuilder",
    "InsertBuilder",
    "SelectBuilder",
    "UpdateBuilder",
    "StatementBuildError",
    "StorageError",
    "quote",
]
