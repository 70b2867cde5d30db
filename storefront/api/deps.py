"""FastAPI dependencies: DB session, data service, cache and sale sessions."""
from typing import Generator

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from storefront.core.cache import QueryCache
from storefront.core.config import settings
from storefront.db.data_service import DataService
from storefront.db.session import SessionLocal
from storefront.db.storage import LocalMediaStorage
from storefront.services.sale_session import SaleSessionStore


def get_db() -> Generator[Session, None, None]:
    """Get database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_storage() -> LocalMediaStorage:
    return LocalMediaStorage(settings.MEDIA_ROOT, settings.MEDIA_URL)


def get_data_service(
    db: Session = Depends(get_db),
    storage: LocalMediaStorage = Depends(get_storage),
) -> DataService:
    return DataService(db, storage)


def get_cache(request: Request) -> QueryCache:
    return request.app.state.query_cache


def get_sale_sessions(request: Request) -> SaleSessionStore:
    return request.app.state.sale_sessions
