"""Database module entry point."""
from teamchat.database.core import DatabaseCore
from teamchat.database.operations import DatabaseOperationsMixin


# Combine Core Infrastructure and Business Operations
class Database(DatabaseCore, DatabaseOperationsMixin):
    pass


# Global database instance
db = Database()

__all__ = ["Database", "db"]
