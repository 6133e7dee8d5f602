# Database configuration for pyorm

from typing import Dict, Any, Optional
from dataclasses import dataclass
import os
from urllib.parse import urlparse

from pyorm.exceptions import ConfigurationError

SUPPORTED_SCHEMES = ('sqlite',)


@dataclass(init=False)
class DatabaseConfig:
    """Database configuration with URL, parameter or environment based initialization"""

    database_url: str
    echo: bool
    timeout: float

    def __init__(
        self,
        database_url: Optional[str] = None,
        database: Optional[str] = None,
        db_type: Optional[str] = None,
        echo: bool = False,
        timeout: float = 5.0
    ):
        if database_url:
            self.database_url = database_url
        elif database or db_type:
            self.database_url = self._construct_url(database, db_type)
        else:
            # Fallback to environment variable or default
            self.database_url = os.getenv('DATABASE_URL', 'sqlite:///:memory:')

        self.echo = echo
        self.timeout = timeout
        self._parse_url()

    @staticmethod
    def _construct_url(database: Optional[str], db_type: Optional[str]) -> str:
        """Construct database URL from individual parameters"""
        db_type = db_type or os.getenv('DB_TYPE', 'sqlite')

        if db_type == 'sqlite':
            if database and database != ':memory:':
                return f'sqlite:///{database}'
            return 'sqlite:///:memory:'
        raise ConfigurationError(f"Unsupported database type: {db_type}")

    @classmethod
    def from_env(cls, prefix: str = "DB_") -> 'DatabaseConfig':
        """Create DatabaseConfig from environment variables"""
        echo = os.getenv(f"{prefix}ECHO", 'false').lower() in ('1', 'true', 'yes')
        timeout = float(os.getenv(f"{prefix}TIMEOUT", '5.0'))

        database_url = os.getenv('DATABASE_URL')
        if database_url:
            return cls(database_url=database_url, echo=echo, timeout=timeout)

        database = os.getenv(f"{prefix}NAME") or os.getenv(f"{prefix}DATABASE")
        db_type = os.getenv(f"{prefix}TYPE") or os.getenv(f"{prefix}DRIVER", "sqlite")
        return cls(database=database, db_type=db_type, echo=echo, timeout=timeout)

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> 'DatabaseConfig':
        """Create DatabaseConfig from dictionary"""
        return cls(
            database_url=config_dict.get('database_url'),
            database=config_dict.get('database'),
            db_type=config_dict.get('db_type'),
            echo=config_dict.get('echo', False),
            timeout=config_dict.get('timeout', 5.0)
        )

    def _parse_url(self):
        """Parse database URL to extract connection parameters"""
        parsed = urlparse(self.database_url)

        self.db_type = parsed.scheme
        self.is_sqlite = self.db_type == 'sqlite'

        if self.is_sqlite:
            # sqlite:///relative.db, sqlite:////abs/path.db, sqlite:///:memory:
            path = self.database_url[len('sqlite://'):]
            if path.startswith('/'):
                path = path[1:]
            self.database = path or ':memory:'
        else:
            self.database = parsed.path.lstrip('/')

    @property
    def is_memory(self) -> bool:
        return self.is_sqlite and self.database == ':memory:'

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary"""
        return {
            'database_url': self.database_url,
            'db_type': self.db_type,
            'database': self.database,
            'echo': self.echo,
            'timeout': self.timeout,
        }


__all__ = ['DatabaseConfig', 'SUPPORTED_SCHEMES']
