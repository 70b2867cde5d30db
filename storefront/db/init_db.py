"""Create all tables and working directories. Run on app startup."""
import logging
from pathlib import Path

from storefront.core.config import settings
from storefront.db.base import Base
from storefront.db.session import engine
from storefront.models import category, product, customer, sale, payment  # noqa: F401 - register models

logger = logging.getLogger(__name__)


def init_db(bind=None):
    Base.metadata.create_all(bind=bind or engine)

    for directory in (settings.MEDIA_ROOT, settings.INVOICE_DIR):
        Path(directory).mkdir(parents=True, exist_ok=True)

    logger.info(f"Tables ready: {', '.join(sorted(Base.metadata.tables))}")
