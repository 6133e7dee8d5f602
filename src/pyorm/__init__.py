"""
pyorm - a small active-record ORM with a fluent query builder.

pyorm maps one table to one Python class. It provides:

- A fluent QueryBuilder that renders parameterized SQL
- A Model base class with find/create/save/delete and dirty tracking
- belongs-to, has-many and has-one relationships
- A synchronous SQLite connection with explicit transactions

Example:
    >>> from pyorm import Model, SQLiteConnection
    >>>
    >>> class User(Model):
    ...     table = 'users'
    ...     fillable = ('name', 'email')
    >>>
    >>> User.bind(SQLiteConnection())
    >>> user = User.create(name='John Doe', email='john@example.com')
    >>> User.where('name', 'like', 'John%').get()
"""

__version__ = "0.1.0"

from pyorm.database import DatabaseConfig, DatabaseConnection, SQLiteConnection, Statement, transaction
from pyorm.exceptions import (
    ORMError, InvalidArgumentError, ModelNotFoundError, AttributeNotFoundError,
    StorageError, ConfigurationError
)
from pyorm.log import configure_logging, get_logger
from pyorm.models import Model, ModelMeta, QueryBuilder, Relation, BelongsTo, HasMany, HasOne
from pyorm.types import OrderDirection, Paginator

__all__ = [
    # Database
    'DatabaseConfig',
    'DatabaseConnection',
    'SQLiteConnection',
    'Statement',
    'transaction',

    # Models
    'Model',
    'ModelMeta',
    'QueryBuilder',
    'Relation',
    'BelongsTo',
    'HasMany',
    'HasOne',
    'OrderDirection',
    'Paginator',

    # Errors
    'ORMError',
    'InvalidArgumentError',
    'ModelNotFoundError',
    'AttributeNotFoundError',
    'StorageError',
    'ConfigurationError',

    # Logging
    'configure_logging',
    'get_logger',
]
