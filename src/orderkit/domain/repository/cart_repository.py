"""Abstract repository for the CartState aggregate."""

from __future__ import annotations

from abc import ABC, abstractmethod

from orderkit.domain.model.cart import CartState


class CartRepository(ABC):

    @abstractmethod
    def load(self) -> CartState | None:
        """Return the persisted cart, or None if nothing was saved yet."""

    @abstractmethod
    def save(self, cart: CartState) -> None:
        """Persist the complete cart, replacing the previous copy."""
