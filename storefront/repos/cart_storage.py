# storefront/repos/cart_storage.py
from typing import Protocol

import redis

from storefront.domain.schemas import Cart
from storefront.utils.retry import redis_retry
from storefront.utils.settings import CART_TTL_SECONDS, REDIS_URL
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class CartStorageError(Exception):
    """Raised when persisted cart state cannot be read or written."""


class CartStorage(Protocol):
    """Durable storage for one session's cart, raw JSON in and out."""

    def load(self) -> str | None: ...

    def save(self, payload: str) -> None: ...


class InMemoryCartStorage:
    def __init__(self, payload: str | None = None):
        self.payload = payload

    def load(self) -> str | None:
        return self.payload

    def save(self, payload: str) -> None:
        self.payload = payload


class RedisCartStorage:
    """
    -one key per session: cart:<session_id>
    -every save refreshes the TTL, abandoned carts expire on their own
    """

    def __init__(
        self,
        session_id: str,
        client: redis.Redis | None = None,
        url: str | None = None,
        ttl: int = CART_TTL_SECONDS,
    ):
        self.key = f"cart:{session_id}"
        self.ttl = ttl
        self.redis = client or redis.Redis.from_url(url or REDIS_URL, decode_responses=True)

    def load(self) -> str | None:
        try:
            return self._get()
        except redis.RedisError as e:
            raise CartStorageError(f"Cannot read {self.key}") from e

    def save(self, payload: str) -> None:
        try:
            self._set(payload)
        except redis.RedisError as e:
            raise CartStorageError(f"Cannot write {self.key}") from e

    @redis_retry()
    def _get(self) -> str | None:
        logger.debug(f"GET {self.key}")
        return self.redis.get(self.key)

    @redis_retry()
    def _set(self, payload: str) -> None:
        logger.debug(f"SET {self.key} EX {self.ttl}")
        self.redis.set(name=self.key, value=payload, ex=self.ttl)


def dump_cart(cart: Cart) -> str:
    return cart.model_dump_json(by_alias=True)


def parse_cart(payload: str) -> Cart:
    return Cart.model_validate_json(payload)
