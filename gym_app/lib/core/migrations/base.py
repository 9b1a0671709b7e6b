"""
Base class for schema migrations.

Each migration:
1. Belongs to exactly one managed table
2. Moves that table from version - 1 to version
3. Provides a description
4. Implements upgrade(), guarded by check_can_apply() so it is a no-op
   when the target shape is already in place
"""

import sqlite3
from abc import ABC, abstractmethod
from typing import Optional
import logging


class Migration(ABC):
    """
    Base class for table migrations.

    Subclasses must implement table, version, description and upgrade().
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        """
        Initialize migration.

        Args:
            logger: Optional logger instance
        """
        self.logger = logger or logging.getLogger(__name__)

    @property
    @abstractmethod
    def table(self) -> str:
        """Name of the managed table this migration changes."""
        pass

    @property
    @abstractmethod
    def version(self) -> int:
        """
        Table version reached after this migration.

        Must be unique per table and sequential (2, 3, 4, ...).
        """
        pass

    @property
    @abstractmethod
    def description(self) -> str:
        """
        Human-readable description of the migration.
        """
        pass

    @abstractmethod
    def upgrade(self, conn: sqlite3.Connection) -> None:
        """
        Apply the migration.

        Args:
            conn: SQLite connection (in transaction)

        Raises:
            Exception: If migration fails
        """
        pass

    def check_can_apply(self, conn: sqlite3.Connection) -> bool:
        """
        Check if migration can be applied.

        Override this to inspect the current table shape.

        Args:
            conn: SQLite connection

        Returns:
            True if migration can be applied
        """
        return True

    def __repr__(self) -> str:
        return f"<Migration {self.table} v{self.version}: {self.description}>"
