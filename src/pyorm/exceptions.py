"""
Exceptions for the pyorm package.

Every error raised by the query builder, the model layer or a database
connection derives from ORMError, so callers can catch the whole family at
the application boundary. Each subclass also inherits the closest builtin
exception, which keeps ``except ValueError`` style handlers working.
"""

from typing import Dict, Any, Optional
import json


class ORMError(Exception):
    """Base exception class for pyorm"""

    default_code = "orm_error"

    def __init__(self,
                 message: str,
                 error_code: Optional[str] = None,
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.default_code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary"""
        result = {
            "error": {
                "code": self.error_code,
                "message": self.message,
            }
        }
        if self.details:
            result["error"]["details"] = self.details
        return result

    def to_json(self) -> str:
        """Convert exception to JSON string"""
        return json.dumps(self.to_dict(), default=str)

    def __str__(self) -> str:
        return self.message


class InvalidArgumentError(ORMError, ValueError):
    """Raised for empty insert/update payloads, bad order directions and similar"""

    default_code = "invalid_argument"


class ModelNotFoundError(ORMError, LookupError):
    """Raised when a row that must exist is missing"""

    default_code = "not_found"

    def __init__(self, message: str, model: Optional[str] = None, id: Any = None, **kwargs):
        details = kwargs.pop("details", None) or {}
        if model is not None:
            details.setdefault("model", model)
        if id is not None:
            details.setdefault("id", id)
        super().__init__(message, details=details, **kwargs)
        self.model = model
        self.id = id


class AttributeNotFoundError(ORMError, KeyError):
    """Raised when reading an attribute the model instance does not hold"""

    default_code = "attribute_not_found"

    def __init__(self, key: str, model: Optional[str] = None):
        where = f" on {model}" if model else ""
        super().__init__(f"Attribute '{key}' is not set{where}", details={"key": key})
        self.key = key

    # KeyError.__str__ would quote the message
    __str__ = ORMError.__str__


class StorageError(ORMError, RuntimeError):
    """Raised when the database driver reports a failure"""

    default_code = "storage_error"

    def __init__(self, message: str, sql: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.sql = sql


class ConfigurationError(ORMError):
    """Raised for missing connections and unsupported database URLs"""

    default_code = "configuration_error"


__all__ = [
    'ORMError',
    'InvalidArgumentError',
    'ModelNotFoundError',
    'AttributeNotFoundError',
    'StorageError',
    'ConfigurationError',
]
