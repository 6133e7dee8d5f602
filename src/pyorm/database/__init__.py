"""
Database module for pyorm.
Contains database configuration and the connections the query builder executes on.
"""

from pyorm.database.config import DatabaseConfig
from pyorm.database.connection import DatabaseConnection, SQLiteConnection, Statement, transaction

__all__ = ['DatabaseConfig', 'DatabaseConnection', 'SQLiteConnection', 'Statement', 'transaction']
