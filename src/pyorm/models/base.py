"""
Base model class for database operations.
"""

import json
import logging
from typing import Any, ClassVar, Dict, List, Mapping, Optional, Sequence, Type, Union

from pyorm.database.connection import DatabaseConnection
from pyorm.exceptions import (
    AttributeNotFoundError, ConfigurationError, InvalidArgumentError, ModelNotFoundError
)
from pyorm.models.query import QueryBuilder, _MISSING
from pyorm.models.relations import Relation

logger = logging.getLogger(__name__)


class ModelMeta(type):
    """
    Metaclass that fills in table names, collects relationship descriptors
    and registers concrete models by class name.

    The registry lets relationships name their target as a string, which is
    how two models can point at each other.
    """

    _registry: Dict[str, Type['Model']] = {}

    def __new__(mcs, name, bases, attrs):
        relationships: Dict[str, Relation] = {}
        for base in reversed(bases):
            relationships.update(getattr(base, '_relationships', {}))
        for key, value in attrs.items():
            if isinstance(value, Relation):
                relationships[key] = value

        new_class = super().__new__(mcs, name, bases, attrs)
        new_class._relationships = relationships

        if attrs.get('__abstract__', False):
            return new_class

        # Set table name if not specified
        if not getattr(new_class, 'table', None):
            new_class.table = new_class.default_table_name()

        if name in mcs._registry and mcs._registry[name] is not new_class:
            logger.debug("Model %s re-registered", name)
        mcs._registry[name] = new_class
        return new_class

    @classmethod
    def resolve(mcs, model: Union[str, Type['Model']]) -> Type['Model']:
        """Look up a model class by name; classes are returned unchanged"""
        if not isinstance(model, str):
            return model
        try:
            return mcs._registry[model]
        except KeyError:
            raise ConfigurationError(
                f"Unknown model '{model}'",
                details={'registered': sorted(mcs._registry)}
            ) from None


class Model(metaclass=ModelMeta):
    """
    Active-record base class: one subclass per table, one instance per row.

    Subclasses declare their table and which columns may be mass-assigned:

        class User(Model):
            table = 'users'
            fillable = ('name', 'email', 'password', 'age', 'status')
            hidden = ('password',)

    and are bound to a connection before use with ``User.bind(connection)``.

    Attributes are kept in an ordered dict together with a snapshot of the
    values last loaded from or written to storage; ``save()`` sends only the
    columns that differ from that snapshot.
    """

    __abstract__ = True

    table: ClassVar[Optional[str]] = None
    primary_key: ClassVar[str] = 'id'
    fillable: ClassVar[Sequence[str]] = ()
    hidden: ClassVar[Sequence[str]] = ()
    foreign_key: ClassVar[Optional[str]] = None

    _connection: ClassVar[Optional[DatabaseConnection]] = None
    _relationships: ClassVar[Dict[str, Relation]] = {}

    def __init__(self, attributes: Optional[Mapping[str, Any]] = None, **kwargs):
        self._attributes: Dict[str, Any] = {}
        self._original: Dict[str, Any] = {}
        self._persisted = False
        self._instance_connection: Optional[DatabaseConnection] = None

        data = dict(attributes or {})
        data.update(kwargs)
        self.fill(data)

    # ------------------------------------------------------------------
    # Class configuration
    # ------------------------------------------------------------------

    @classmethod
    def bind(cls, connection: Optional[DatabaseConnection]) -> None:
        """Set the connection used by this model class and its subclasses"""
        cls._connection = connection

    @classmethod
    def get_connection(cls) -> DatabaseConnection:
        if cls._connection is None:
            raise ConfigurationError(
                f"No database connection bound to {cls.__name__}; call {cls.__name__}.bind(connection)"
            )
        return cls._connection

    @classmethod
    def default_table_name(cls) -> str:
        """Naive plural of the class name: User -> users"""
        return cls.__name__.lower() + 's'

    @classmethod
    def foreign_key_name(cls) -> str:
        """Column other tables use to reference this model: User -> user_id"""
        return cls.foreign_key or cls.__name__.lower() + '_id'

    @classmethod
    def is_fillable(cls, key: str) -> bool:
        """Empty fillable means every key may be assigned"""
        return not cls.fillable or key in cls.fillable

    @classmethod
    def get_relationships(cls) -> Dict[str, Relation]:
        return dict(cls._relationships)

    # ------------------------------------------------------------------
    # Static query entry points
    # ------------------------------------------------------------------

    @classmethod
    def query(cls, connection: Optional[DatabaseConnection] = None) -> QueryBuilder:
        """Return a new QueryBuilder bound to this model"""
        return QueryBuilder(connection or cls.get_connection(), cls.table,
                            model_class=cls, primary_key=cls.primary_key)

    @classmethod
    def new_from_row(cls, row: Mapping[str, Any],
                     connection: Optional[DatabaseConnection] = None) -> 'Model':
        """Build a persisted instance from a database row without fillable filtering"""
        instance = cls()
        instance._attributes = dict(row)
        instance._persisted = True
        instance._instance_connection = connection
        instance.sync_original()
        return instance

    @classmethod
    def find(cls, id: Any) -> Optional['Model']:
        """Find a record by primary key; None when missing"""
        return cls.query().find(id)

    @classmethod
    def find_or_fail(cls, id: Any) -> 'Model':
        model = cls.find(id)
        if model is None:
            raise ModelNotFoundError(
                f"No {cls.__name__} record found with ID: {id}",
                model=cls.__name__,
                id=id
            )
        return model

    @classmethod
    def all(cls) -> List['Model']:
        """Every row of the table, unpaginated"""
        return cls.query().get()

    @classmethod
    def first(cls) -> Optional['Model']:
        return cls.query().first()

    @classmethod
    def where(cls, column: str, operator: Any, value: Any = _MISSING) -> QueryBuilder:
        return cls.query().where(column, operator, value)

    @classmethod
    def or_where(cls, column: str, operator: Any, value: Any = _MISSING) -> QueryBuilder:
        # A leading OR renders like AND
        return cls.query().or_where(column, operator, value)

    @classmethod
    def where_in(cls, column: str, values: Sequence[Any]) -> QueryBuilder:
        return cls.query().where_in(column, values)

    @classmethod
    def create(cls, attributes: Optional[Mapping[str, Any]] = None, **kwargs) -> 'Model':
        """Create new record from the fillable subset of attributes"""
        instance = cls(attributes, **kwargs)
        instance.save()
        return instance

    @classmethod
    def update_by_id(cls, id: Any, attributes: Mapping[str, Any]) -> int:
        """Update one row without loading it; returns affected row count"""
        return cls.query().where(cls.primary_key, id).update(dict(attributes))

    @classmethod
    def delete_by_id(cls, id: Any) -> int:
        return cls.query().where(cls.primary_key, id).delete()

    @classmethod
    def count(cls) -> int:
        return cls.query().count()

    @classmethod
    def exists(cls) -> bool:
        """Whether the table has any rows"""
        return cls.query().exists()

    @classmethod
    def with_(cls, *relations: Union[str, Sequence[str]]) -> QueryBuilder:
        """Start a query carrying eager-load hints"""
        builder = cls.query().with_(*relations)
        cls._check_relations(builder.get_with())
        return builder

    @classmethod
    def load(cls, relation: str) -> QueryBuilder:
        cls._check_relations([relation])
        return cls.query().load(relation)

    @classmethod
    def _check_relations(cls, names: Sequence[str]) -> None:
        for name in names:
            root = name.split('.', 1)[0]
            if root not in cls._relationships and not callable(getattr(cls, root, None)):
                logger.warning("%s has no relationship named '%s'", cls.__name__, root)

    # ------------------------------------------------------------------
    # Attribute state
    # ------------------------------------------------------------------

    @property
    def persisted(self) -> bool:
        """True iff the row is known to exist in storage"""
        return self._persisted

    @property
    def attributes(self) -> Dict[str, Any]:
        return dict(self._attributes)

    @property
    def original(self) -> Dict[str, Any]:
        return dict(self._original)

    def fill(self, attributes: Mapping[str, Any]) -> 'Model':
        """Assign fillable attributes; other keys are silently ignored"""
        for key, value in attributes.items():
            if self.is_fillable(key):
                self._attributes[key] = value
        return self

    def get_attribute(self, key: str, default: Any = _MISSING) -> Any:
        if key in self._attributes:
            return self._attributes[key]
        if default is _MISSING:
            raise AttributeNotFoundError(key, model=type(self).__name__)
        return default

    def set_attribute(self, key: str, value: Any) -> None:
        """Assign one attribute, bypassing the fillable check"""
        self._attributes[key] = value

    def has_attribute(self, key: str) -> bool:
        return key in self._attributes

    def unset_attribute(self, key: str) -> None:
        self._attributes.pop(key, None)

    def get_key(self) -> Any:
        """Primary key value or None"""
        return self._attributes.get(self.primary_key)

    def get_fillable_attributes(self) -> Dict[str, Any]:
        if not self.fillable:
            return dict(self._attributes)
        return {key: value for key, value in self._attributes.items() if key in self.fillable}

    def get_dirty(self) -> Dict[str, Any]:
        """Fillable attributes that are new or changed since the last sync"""
        dirty = {}
        for key, value in self._attributes.items():
            if key not in self._original or self._original[key] != value:
                if self.is_fillable(key):
                    dirty[key] = value
        return dirty

    def is_dirty(self, *keys: str) -> bool:
        dirty = self.get_dirty()
        if not keys:
            return bool(dirty)
        return any(key in dirty for key in keys)

    def sync_original(self) -> 'Model':
        self._original = dict(self._attributes)
        return self

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _get_connection(self) -> DatabaseConnection:
        return self._instance_connection or type(self).get_connection()

    def _new_query(self, hydrate: bool = True) -> QueryBuilder:
        return QueryBuilder(self._get_connection(), self.table,
                            model_class=type(self) if hydrate else None,
                            primary_key=self.primary_key)

    def save(self) -> bool:
        """Insert or update; returns False only when an update matched no row"""
        if self._persisted:
            return self.perform_update()
        return self.perform_insert()

    def perform_insert(self) -> bool:
        attributes = self.get_fillable_attributes()
        if not attributes:
            raise InvalidArgumentError(
                f"No fillable attributes to insert for {type(self).__name__}"
            )

        id = self._new_query().insert(attributes)
        self._attributes[self.primary_key] = id
        self._persisted = True
        self.sync_original()
        logger.debug("Inserted %s %s=%s", type(self).__name__, self.primary_key, id)
        return True

    def perform_update(self) -> bool:
        id = self.get_key()
        if id is None:
            raise ModelNotFoundError(
                f"Cannot update {type(self).__name__} without primary key",
                model=type(self).__name__
            )

        dirty = self.get_dirty()
        if not dirty:
            # No changes to save
            return True

        updated = self._new_query().where(self.primary_key, id).update(dirty)
        if updated > 0:
            self.sync_original()
            return True

        logger.debug("Update of %s %s=%s matched no rows", type(self).__name__, self.primary_key, id)
        return False

    def delete(self) -> bool:
        """Delete this row; returns False if it was not persisted or already gone"""
        if not self._persisted:
            return False

        id = self.get_key()
        if id is None:
            return False

        deleted = self._new_query().where(self.primary_key, id).delete()
        if deleted > 0:
            self._persisted = False
            return True
        return False

    def refresh(self) -> 'Model':
        """Reload attributes from storage, discarding unsaved changes"""
        id = self.get_key()
        row = self._new_query(hydrate=False).find(id) if id is not None else None
        if row is None:
            raise ModelNotFoundError(
                f"No {type(self).__name__} record found with ID: {id}",
                model=type(self).__name__,
                id=id
            )
        self._attributes = dict(row)
        self._persisted = True
        return self.sync_original()

    # ------------------------------------------------------------------
    # Relationships
    # ------------------------------------------------------------------

    def _related_query(self, related: Type['Model']) -> QueryBuilder:
        connection = related._connection or self._get_connection()
        return related.query(connection)

    def belongs_to(self, related: Union[str, Type['Model']],
                   foreign_key: Optional[str] = None,
                   owner_key: Optional[str] = None) -> Optional['Model']:
        """Owner row referenced by this row's foreign key"""
        related = ModelMeta.resolve(related)
        foreign_key = foreign_key or related.foreign_key_name()
        owner_key = owner_key or related.primary_key

        foreign_value = self._attributes.get(foreign_key)
        if foreign_value is None:
            return None

        return self._related_query(related).where(owner_key, foreign_value).first()

    def has_many(self, related: Union[str, Type['Model']],
                 foreign_key: Optional[str] = None,
                 local_key: Optional[str] = None) -> List['Model']:
        """Rows of the related table whose foreign key equals this row's local key"""
        related = ModelMeta.resolve(related)
        foreign_key = foreign_key or type(self).foreign_key_name()
        local_key = local_key or self.primary_key

        local_value = self._attributes.get(local_key)
        if local_value is None:
            return []

        return self._related_query(related).where(foreign_key, local_value).get()

    def has_one(self, related: Union[str, Type['Model']],
                foreign_key: Optional[str] = None,
                local_key: Optional[str] = None) -> Optional['Model']:
        related = ModelMeta.resolve(related)
        foreign_key = foreign_key or type(self).foreign_key_name()
        local_key = local_key or self.primary_key

        local_value = self._attributes.get(local_key)
        if local_value is None:
            return None

        return self._related_query(related).where(foreign_key, local_value).first()

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        """Attributes without hidden columns"""
        return {key: value for key, value in self._attributes.items() if key not in self.hidden}

    def to_json(self, **kwargs) -> str:
        kwargs.setdefault('default', str)
        return json.dumps(self.to_dict(), **kwargs)

    # ------------------------------------------------------------------
    # Attribute access sugar
    # ------------------------------------------------------------------

    def __getattr__(self, name: str) -> Any:
        # Only called when normal lookup fails
        if not name.startswith('_'):
            attributes = self.__dict__.get('_attributes')
            if attributes is not None and name in attributes:
                return attributes[name]
        raise AttributeError(f"'{type(self).__name__}' object has no attribute '{name}'")

    def __setattr__(self, name: str, value: Any) -> None:
        if name.startswith('_'):
            object.__setattr__(self, name, value)
            return

        class_attr = getattr(type(self), name, _MISSING)
        if class_attr is _MISSING:
            self._attributes[name] = value
        elif hasattr(type(class_attr), '__set__'):
            # Properties and relationship descriptors decide for themselves
            object.__setattr__(self, name, value)
        else:
            # Table config and methods must not be shadowed per instance
            raise AttributeError(
                f"'{name}' is defined on {type(self).__name__}; "
                f"use set_attribute('{name}', value) for a column of that name"
            )

    def __delattr__(self, name: str) -> None:
        if not name.startswith('_') and name in self.__dict__.get('_attributes', {}):
            del self._attributes[name]
        else:
            object.__delattr__(self, name)

    def __str__(self) -> str:
        return self.to_json()

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.to_dict()}>"


__all__ = ['Model', 'ModelMeta']
