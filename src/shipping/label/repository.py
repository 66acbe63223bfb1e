"""Label storage port and its protean-backed implementation.

Both label aggregates are stored through the active domain; the
implementation fans queries out over each concrete label type.
"""

from abc import ABC, abstractmethod

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from shipping.label.click_post import ClickPostLabel
from shipping.label.label import ShippingLabel
from shipping.label.yamato_compact import YamatoCompactLabel

_LABEL_AGGREGATES = (ClickPostLabel, YamatoCompactLabel)


class LabelRepository(ABC):
    @abstractmethod
    def find_by_order_id(self, order_id: str) -> list[ShippingLabel]: ...

    @abstractmethod
    def save(self, label: ShippingLabel) -> None: ...

    @abstractmethod
    def find_by_id(self, label_id: str) -> ShippingLabel | None: ...


class DomainLabelRepository(LabelRepository):
    """Stores labels through the active domain's repositories."""

    def find_by_order_id(self, order_id: str) -> list[ShippingLabel]:
        labels: list[ShippingLabel] = []
        for aggregate_cls in _LABEL_AGGREGATES:
            repo = current_domain.repository_for(aggregate_cls)
            labels.extend(repo._dao.query.filter(order_id=order_id).all().items)
        return sorted(labels, key=lambda label: label.issued_at)

    def save(self, label: ShippingLabel) -> None:
        current_domain.repository_for(type(label)).add(label)

    def find_by_id(self, label_id: str) -> ShippingLabel | None:
        for aggregate_cls in _LABEL_AGGREGATES:
            try:
                return current_domain.repository_for(aggregate_cls).get(label_id)
            except ObjectNotFoundError:
                continue
        return None
