from abc import ABC, abstractmethod
from typing import TypeVar, Generic, Optional, List, Any, Dict, Iterator
from contextlib import contextmanager
import logging

from sqlalchemy import text
from sqlalchemy.engine import Connection
from sqlalchemy.exc import SQLAlchemyError, IntegrityError

from spooky_styles.core.exceptions import ConflictError, DatabaseError
from spooky_styles.db import get_connection, get_engine

T = TypeVar('T')

logger = logging.getLogger(__name__)


class BaseRepository(ABC, Generic[T]):
    """
    Abstract base repository providing common database operations.

    Every query is parameterized text() SQL; rows come back as plain dicts
    and concrete repositories turn them into dataclass models.
    """

    @contextmanager
    def get_db_connection(self) -> Iterator[Connection]:
        """
        Pooled connection as a context manager.

        Only checkout failures become DatabaseError here; errors raised by
        statements reach the calling execute_* method unchanged, so an
        IntegrityError still maps to ConflictError.
        """
        try:
            conn = get_connection()
        except SQLAlchemyError as e:
            logger.error(f"Database connection error: {str(e)}")
            raise DatabaseError(f"Database connection failed: {str(e)}", "CONNECT")
        with conn:
            yield conn

    @contextmanager
    def transaction(self) -> Iterator[Connection]:
        """
        Run several statements atomically.

        Commits when the block exits normally and rolls back on any
        exception, including the API exceptions raised inside the block.
        """
        try:
            with get_engine().begin() as conn:
                yield conn
        except IntegrityError as e:
            logger.error(f"Integrity constraint violation in transaction: {str(e)}")
            raise ConflictError("The request conflicts with existing data")
        except SQLAlchemyError as e:
            logger.error(f"Transaction failed: {str(e)}")
            raise DatabaseError(f"Transaction failed: {str(e)}", "TRANSACTION")

    def execute_query(
        self,
        query: str,
        params: Optional[Dict[str, Any]] = None
    ) -> List[Dict[str, Any]]:
        """
        Execute SELECT query and return results as list of dictionaries

        Raises:
            DatabaseError: When query execution fails
        """
        try:
            with self.get_db_connection() as conn:
                result = conn.execute(text(query), params or {})
                return [dict(row) for row in result.mappings()]
        except SQLAlchemyError as e:
            logger.error(f"Query execution failed: {query}, Error: {str(e)}")
            raise DatabaseError("Query execution failed", "SELECT")

    def execute_single_query(
        self,
        query: str,
        params: Optional[Dict[str, Any]] = None
    ) -> Optional[Dict[str, Any]]:
        """Execute query expecting single result; None when no row matches"""
        try:
            with self.get_db_connection() as conn:
                row = conn.execute(text(query), params or {}).mappings().first()
                return dict(row) if row else None
        except SQLAlchemyError as e:
            logger.error(f"Single query execution failed: {query}, Error: {str(e)}")
            raise DatabaseError("Single query execution failed", "SELECT")

    def execute_command(
        self,
        command: str,
        params: Optional[Dict[str, Any]] = None
    ) -> int:
        """
        Execute INSERT/UPDATE/DELETE command

        Returns:
            Number of affected rows
        """
        try:
            with self.get_db_connection() as conn:
                result = conn.execute(text(command), params or {})
                conn.commit()
                return result.rowcount
        except IntegrityError as e:
            logger.error(f"Integrity constraint violation: {command}, Error: {str(e)}")
            raise ConflictError("The request conflicts with existing data")
        except SQLAlchemyError as e:
            logger.error(f"Command execution failed: {command}, Error: {str(e)}")
            raise DatabaseError("Command execution failed", "WRITE")

    def execute_returning(
        self,
        command: str,
        params: Optional[Dict[str, Any]] = None
    ) -> Optional[Dict[str, Any]]:
        """Execute a write with a RETURNING clause and return the first row"""
        try:
            with self.get_db_connection() as conn:
                row = conn.execute(text(command), params or {}).mappings().first()
                conn.commit()
                return dict(row) if row else None
        except IntegrityError as e:
            logger.error(f"Integrity constraint violation: {command}, Error: {str(e)}")
            raise ConflictError("The request conflicts with existing data")
        except SQLAlchemyError as e:
            logger.error(f"Write execution failed: {command}, Error: {str(e)}")
            raise DatabaseError("Write execution failed", "WRITE")

    def execute_scalar(
        self,
        query: str,
        params: Optional[Dict[str, Any]] = None
    ) -> Any:
        """Execute query returning single scalar value (COUNT, SUM, etc.)"""
        try:
            with self.get_db_connection() as conn:
                return conn.execute(text(query), params or {}).scalar()
        except SQLAlchemyError as e:
            logger.error(f"Scalar query execution failed: {query}, Error: {str(e)}")
            raise DatabaseError("Scalar query execution failed", "SELECT")

    @abstractmethod
    def find_by_id(self, entity_id: str) -> Optional[T]:
        """Get entity by ID, or None"""
        pass

    def exists(self, entity_id: str) -> bool:
        """Check if entity exists by ID"""
        query = f"SELECT 1 FROM {self.table_name} WHERE id = :id"
        return self.execute_scalar(query, {"id": entity_id}) is not None

    @property
    @abstractmethod
    def table_name(self) -> str:
        """Table name for the entity"""
        pass
