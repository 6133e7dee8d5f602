"""
Models package for pyorm.
"""

from .base import Model, ModelMeta
from .query import QueryBuilder
from .relations import BelongsTo, HasMany, HasOne, Relation

__all__ = [
    'Model',
    'ModelMeta',
    'QueryBuilder',
    'Relation',
    'BelongsTo',
    'HasMany',
    'HasOne',
]
