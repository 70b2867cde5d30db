"""
Table-level data access used by every service.

Mirrors the hosted-backend contract the dashboard was built against:
fetch_all / get / insert / update / delete on named tables, plus binary
upload for product images. Each write commits on its own; there is no
transaction spanning several calls.
"""
import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from storefront.core.exceptions import (
    NotFoundError,
    PersistenceError,
    ReferentialConstraintError,
    ValidationError,
)
from storefront.db.storage import LocalMediaStorage
from storefront.models import Category, Customer, Payment, Product, Sale, SaleItem

logger = logging.getLogger(__name__)

TABLES = {
    "categories": Category,
    "products": Product,
    "customers": Customer,
    "sales": Sale,
    "sale_items": SaleItem,
    "payments": Payment,
}

_OPERATORS = {
    "eq": lambda col, value: col == value,
    "ne": lambda col, value: col != value,
    "gt": lambda col, value: col > value,
    "gte": lambda col, value: col >= value,
    "lt": lambda col, value: col < value,
    "lte": lambda col, value: col <= value,
    "in": lambda col, value: col.in_(value),
}


def _cause(error: Exception) -> str:
    """Driver message without SQLAlchemy's statement/background noise."""
    orig = getattr(error, "orig", None)
    return str(orig) if orig is not None else str(error)


class DataService:
    def __init__(self, db: Session, storage: Optional[LocalMediaStorage] = None):
        self.db = db
        self.storage = storage

    def _model(self, table: str):
        try:
            return TABLES[table]
        except KeyError:
            raise ValidationError(f"Unknown table: {table}")

    def _fail(self, action: str, table: str, error: SQLAlchemyError) -> PersistenceError:
        self.db.rollback()
        message = _cause(error)
        logger.error(f"[DataService] {action} on {table} failed: {message}")
        return PersistenceError(message)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def fetch_all(
        self,
        table: str,
        filters: Optional[Dict[str, Any]] = None,
        joins: Optional[Sequence[str]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
    ) -> List[Any]:
        """
        Read a collection.

        Args:
            filters: ``{"column": value}`` or ``{"column__op": value}`` with op in
                eq, ne, gt, gte, lt, lte, in. E.g. ``{"quantity__gt": 0}``.
            joins: relationship names to eager-load, e.g. ``["category"]``.
            order_by: column name to sort on.
        """
        model = self._model(table)
        query = self.db.query(model)

        for key, value in (filters or {}).items():
            column_name, _, op = key.partition("__")
            column = getattr(model, column_name, None)
            if column is None or (op and op not in _OPERATORS):
                raise ValidationError(f"Invalid filter '{key}' for {table}")
            query = query.filter(_OPERATORS[op or "eq"](column, value))

        for relation in joins or ():
            if not hasattr(model, relation):
                raise ValidationError(f"Invalid join '{relation}' for {table}")
            query = query.options(selectinload(getattr(model, relation)))

        if order_by:
            column = getattr(model, order_by, None)
            if column is None:
                raise ValidationError(f"Invalid order column '{order_by}' for {table}")
            query = query.order_by(column.desc() if descending else column.asc())

        try:
            return query.all()
        except SQLAlchemyError as e:
            raise self._fail("fetch_all", table, e)

    def get(self, table: str, record_id: str, joins: Optional[Sequence[str]] = None) -> Any:
        model = self._model(table)
        query = self.db.query(model).filter(model.id == record_id)
        for relation in joins or ():
            query = query.options(selectinload(getattr(model, relation)))
        try:
            row = query.first()
        except SQLAlchemyError as e:
            raise self._fail("get", table, e)
        if row is None:
            raise NotFoundError(model.__name__, record_id)
        return row

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def insert(self, table: str, record: Dict[str, Any]) -> Any:
        """Insert one row and return it with its generated id and timestamp."""
        model = self._model(table)
        row = model(**record)
        try:
            self.db.add(row)
            self.db.commit()
            self.db.refresh(row)
        except SQLAlchemyError as e:
            raise self._fail("insert", table, e)
        logger.debug(f"[DataService] Inserted {table} {row.id}")
        return row

    def insert_many(self, table: str, records: Iterable[Dict[str, Any]]) -> List[Any]:
        """Insert a batch in a single request; all rows land or none do."""
        model = self._model(table)
        rows = [model(**record) for record in records]
        try:
            self.db.add_all(rows)
            self.db.commit()
            for row in rows:
                self.db.refresh(row)
        except SQLAlchemyError as e:
            raise self._fail("insert_many", table, e)
        logger.debug(f"[DataService] Inserted {len(rows)} rows into {table}")
        return rows

    def update(self, table: str, record_id: str, changes: Dict[str, Any]) -> Any:
        row = self.get(table, record_id)
        for field, value in changes.items():
            if not hasattr(row, field):
                raise ValidationError(f"Unknown field '{field}' for {table}")
            setattr(row, field, value)
        try:
            self.db.commit()
            self.db.refresh(row)
        except SQLAlchemyError as e:
            raise self._fail("update", table, e)
        return row

    def delete(self, table: str, record_id: str) -> None:
        row = self.get(table, record_id)
        try:
            self.db.delete(row)
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            message = _cause(e)
            logger.warning(f"[DataService] delete on {table} {record_id} blocked: {message}")
            raise ReferentialConstraintError(
                f"Cannot delete {table} {record_id}: it is still referenced ({message})"
            ) from e
        except SQLAlchemyError as e:
            raise self._fail("delete", table, e)

    # ------------------------------------------------------------------
    # Storage
    # ------------------------------------------------------------------

    def upload_binary(self, bucket: str, path: str, content: bytes) -> str:
        if self.storage is None:
            raise PersistenceError("No storage backend configured")
        return self.storage.upload(bucket, path, content)
