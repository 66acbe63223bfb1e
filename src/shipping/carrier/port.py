"""Carrier ports — abstract interfaces for label issuance.

The use case programs against ``LabelIssuer``; the dispatcher programs
against one gateway per carrier. Gateways are swapped via configuration.
"""

from abc import ABC, abstractmethod

from shipping.label.click_post import ClickPostLabel
from shipping.label.label import ShippingLabel
from shipping.label.method import ShippingMethod
from shipping.label.yamato_compact import YamatoCompactLabel
from shipping.order.order import Order


class LabelIssuer(ABC):
    @abstractmethod
    async def issue(self, order: Order, method: ShippingMethod) -> ShippingLabel:
        """Issue a label for ``order`` with the carrier behind ``method``."""
        ...


class ClickPostGateway(ABC):
    @abstractmethod
    async def issue(self, order: Order) -> ClickPostLabel:
        """Purchase postage and return the printable label.

        Raises:
            LabelIssuanceFailed: when any stage of the carrier flow fails.
        """
        ...


class YamatoCompactGateway(ABC):
    @abstractmethod
    async def issue(self, order: Order) -> YamatoCompactLabel:
        """Register the shipment and return the QR waybill.

        Raises:
            LabelIssuanceFailed: when any stage of the carrier flow fails.
        """
        ...
