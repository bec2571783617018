"""Port for the order-placement collaborator used at checkout."""

from __future__ import annotations

from abc import ABC, abstractmethod

from orderkit.domain.model.recurring_order import OrderSnapshot


class OrderPlacer(ABC):

    @abstractmethod
    def place(self, snapshot: OrderSnapshot) -> str:
        """Submit a one-time order and return its placed-order id."""
