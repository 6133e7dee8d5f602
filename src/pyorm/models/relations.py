"""
Declarative relationship descriptors.

    class Post(Model):
        author = BelongsTo('User', foreign_key='user_id')
        comments = HasMany('Comment')

Each access runs a fresh query; nothing is cached on the instance.
"""

from typing import Any, Optional, Type, Union, TYPE_CHECKING

if TYPE_CHECKING:
    from pyorm.models.base import Model


class Relation:
    """Base descriptor for a relationship to another model"""

    def __init__(self,
                 related: Union[str, Type['Model']],
                 foreign_key: Optional[str] = None,
                 key: Optional[str] = None):
        self.related = related
        self.foreign_key = foreign_key
        self.key = key
        self.name: Optional[str] = None

    def __set_name__(self, owner, name):
        self.name = name

    def __get__(self, instance, owner):
        if instance is None:
            return self
        return self.resolve(instance)

    def __set__(self, instance, value):
        raise AttributeError(
            f"Relationship '{self.name}' is read-only; set the foreign key attribute instead"
        )

    def resolve(self, instance: 'Model') -> Any:
        raise NotImplementedError

    def __repr__(self) -> str:
        related = self.related if isinstance(self.related, str) else self.related.__name__
        return f"<{self.__class__.__name__} {self.name} -> {related}>"


class BelongsTo(Relation):
    """Many-to-one; key is the owner key on the related table"""

    def resolve(self, instance: 'Model') -> Optional['Model']:
        return instance.belongs_to(self.related, self.foreign_key, self.key)


class HasMany(Relation):
    """One-to-many; key is the local key on this table"""

    def resolve(self, instance: 'Model') -> list:
        return instance.has_many(self.related, self.foreign_key, self.key)


class HasOne(Relation):
    def resolve(self, instance: 'Model') -> Optional['Model']:
        return instance.has_one(self.related, self.foreign_key, self.key)


__all__ = ['Relation', 'BelongsTo', 'HasMany', 'HasOne']
