"""Key-value-store-backed implementation of CartRepository."""

from __future__ import annotations

from orderkit.domain.exceptions import PersistenceError, ValidationError
from orderkit.domain.model.cart import CartState
from orderkit.domain.repository.cart_repository import CartRepository
from orderkit.domain.repository.key_value_store import KeyValueStore
from orderkit.infrastructure.persistence import serialization


class KeyValueCartRepository(CartRepository):

    def __init__(self, store: KeyValueStore, key: str = "@cart") -> None:
        self._store = store
        self._key = key

    # --- CartRepository interface ---------------------------------------------

    def load(self) -> CartState | None:
        data = self._store.get(self._key)
        if data is None:
            return None
        raw = serialization.loads(data)
        if not isinstance(raw, dict):
            raise PersistenceError("Stored cart is not an object")
        try:
            return serialization.cart_to_domain(raw)
        except (
            KeyError, TypeError, ValueError, AttributeError, ArithmeticError, ValidationError
        ) as exc:
            raise PersistenceError(f"Stored cart is malformed: {exc!r}") from exc

    def save(self, cart: CartState) -> None:
        self._store.set(self._key, serialization.dumps(serialization.cart_to_raw(cart)))
