# vipgate/core/database/base.py
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

class DatabaseService(ABC):
    """
    Abstract base class for database services.
    Implementations raise StoreUnavailableError when the backend fails and
    DuplicateKeyError when a unique constraint rejects a write.
    """

    @abstractmethod
    def connect(self) -> bool:
        """
        Establishes a connection to the database.
        Returns:
            bool: True if connection was successful, False otherwise.
        """
        raise NotImplementedError

    @abstractmethod
    def disconnect(self) -> bool:
        """Closes the database connection."""
        raise NotImplementedError

    @abstractmethod
    def insert(self, table: str, data: Dict[str, Any]) -> int:
        """
        Inserts a new record into the specified table.
        Args:
            table (str): The name of the table.
            data (Dict[str, Any]): Column names mapped to the values to insert.
        Returns:
            int: The surrogate id of the new row.
        """
        raise NotImplementedError

    @abstractmethod
    def find_one(self, table: str, filters: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """
        Finds a single record in the table that matches the filters.
        Returns:
            Optional[Dict[str, Any]]: The row as a dictionary, or None if no record matches.
        """
        raise NotImplementedError

    @abstractmethod
    def find(self, table: str, filters: Optional[Dict[str, Any]] = None,
             order_by: Optional[str] = None,
             limit: Optional[int] = None) -> List[Dict[str, Any]]:
        """
        Finds multiple records in the table that match the filters.
        Args:
            table (str): The name of the table.
            filters (Dict[str, Any], optional): Columns and values to filter by. Keys may carry
                an operator suffix such as "created_at__gt".
            order_by (Optional[str], optional): Column to order by (e.g., "created_at DESC").
            limit (Optional[int], optional): Maximum number of records to return.
        """
        raise NotImplementedError

    @abstractmethod
    def update(self, table: str, filters: Dict[str, Any], updates: Dict[str, Any]) -> int:
        """
        Updates records in the table that match the filters.
        Returns:
            int: The number of records updated.
        """
        raise NotImplementedError

    @abstractmethod
    def delete(self, table: str, filters: Dict[str, Any]) -> int:
        """
        Deletes records from the table that match the filters.
        Returns:
            int: The number of records deleted.
        """
        raise NotImplementedError

    @abstractmethod
    def count(self, table: str, filters: Optional[Dict[str, Any]] = None) -> int:
        """
        Counts records in the table that match the filters.
        """
        raise NotImplementedError

    @abstractmethod
    def ping(self) -> bool:
        """Returns True when the backend answers a trivial query."""
        raise NotImplementedError
