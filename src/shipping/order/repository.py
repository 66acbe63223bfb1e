"""Order lookup port and its protean-backed implementation."""

from abc import ABC, abstractmethod

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from shipping.order.order import Order


class OrderRepository(ABC):
    """Read access to orders for the shipping context."""

    @abstractmethod
    def find_by_id(self, order_id: str) -> Order | None: ...


class DomainOrderRepository(OrderRepository):
    """Reads orders through the active domain's repository."""

    def find_by_id(self, order_id: str) -> Order | None:
        try:
            return current_domain.repository_for(Order).get(order_id)
        except ObjectNotFoundError:
            return None

    def add(self, order: Order) -> None:
        current_domain.repository_for(Order).add(order)
