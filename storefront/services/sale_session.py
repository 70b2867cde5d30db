"""
Sale sessions: one in-progress sale per session, owned explicitly.

A session captures the sellable products (quantity > 0) when it opens.
That snapshot prices and validates the cart and is also the base for the
stock decrement at commit time.
"""
import enum
import logging
import threading
import time
import uuid
from typing import Callable, Dict, Iterable, Optional

from storefront.core.config import settings
from storefront.core.exceptions import NotFoundError, ValidationError
from storefront.models.sale import PaymentMethod
from storefront.services.cart import Cart, ProductSnapshot

logger = logging.getLogger(__name__)


class CommitState(str, enum.Enum):
    IDLE = "idle"
    SUBMITTING = "submitting"
    COMMITTED = "committed"
    FAILED = "failed"


def parse_payment_method(value) -> PaymentMethod:
    try:
        return PaymentMethod(value)
    except ValueError:
        allowed = ", ".join(m.value for m in PaymentMethod)
        raise ValidationError(f"Invalid payment method '{value}'. Use one of: {allowed}")


class SaleSession:
    def __init__(self, products: Iterable[ProductSnapshot], session_id: Optional[str] = None):
        self.id = session_id or str(uuid.uuid4())
        self.catalog: Dict[str, ProductSnapshot] = {p.id: p for p in products}
        self.cart = Cart(self.catalog)
        self.customer_id: Optional[str] = None
        self.payment_method = PaymentMethod.CASH
        self.state = CommitState.IDLE
        self.last_error: Optional[str] = None
        self.last_used = 0.0

    def set_checkout_details(self, customer_id=None, payment_method=None) -> None:
        # Empty string from the dashboard's select means walk-in.
        self.customer_id = customer_id or None
        if payment_method is not None:
            self.payment_method = parse_payment_method(payment_method)

    def reset_after_commit(self) -> None:
        self.cart.clear()
        self.customer_id = None
        self.payment_method = PaymentMethod.CASH

    def __repr__(self):
        return f"<SaleSession id={self.id} state={self.state.value} lines={len(self.cart.lines)}>"


class SaleSessionStore:
    """
    Open sessions keyed by id. One store per application instance.

    A session untouched for ``ttl`` seconds counts as abandoned and is
    evicted on the next ``open`` or ``get``. Sessions mid-commit are kept.
    """

    def __init__(self, ttl: Optional[float] = None, clock: Callable[[], float] = time.monotonic):
        self.ttl = settings.SALE_SESSION_TTL if ttl is None else ttl
        self._clock = clock
        self._sessions: Dict[str, SaleSession] = {}
        self._lock = threading.Lock()

    def _is_expired(self, session: SaleSession, now: float) -> bool:
        return session.state != CommitState.SUBMITTING and now - session.last_used > self.ttl

    def _evict_expired(self, now: float) -> None:
        expired = [sid for sid, s in self._sessions.items() if self._is_expired(s, now)]
        for sid in expired:
            del self._sessions[sid]
        if expired:
            logger.info(f"[SaleSession] Evicted {len(expired)} idle sessions")

    def open(self, products: Iterable[ProductSnapshot]) -> SaleSession:
        session = SaleSession(products)
        with self._lock:
            now = self._clock()
            self._evict_expired(now)
            session.last_used = now
            self._sessions[session.id] = session
        logger.info(f"[SaleSession] Opened {session.id} with {len(session.catalog)} products")
        return session

    def get(self, session_id: str) -> SaleSession:
        with self._lock:
            now = self._clock()
            self._evict_expired(now)
            session = self._sessions.get(session_id)
            if session is not None:
                session.last_used = now
        if session is None:
            raise NotFoundError("Sale session", session_id)
        return session

    def discard(self, session_id: str) -> None:
        with self._lock:
            removed = self._sessions.pop(session_id, None)
        if removed is not None:
            logger.info(f"[SaleSession] Discarded {session_id}")

    def __len__(self):
        with self._lock:
            return len(self._sessions)
