"""Fake carrier gateways — deterministic carriers for testing and development.

Generate mock tracking numbers, PDFs and QR payloads without touching a
browser. Configurable success/failure behavior for integration testing.
"""

import base64
from collections.abc import Callable
from datetime import UTC, datetime
from uuid import uuid4

from shipping.carrier.errors import LabelIssuanceFailed
from shipping.carrier.port import ClickPostGateway, YamatoCompactGateway
from shipping.label.click_post import ClickPostLabel
from shipping.label.method import ShippingMethod
from shipping.label.yamato_compact import YamatoCompactLabel
from shipping.order.order import Order

FAKE_PDF = base64.b64encode(b"%PDF-1.4\n% fake click post label\n%%EOF\n").decode("ascii")


class _FakeGateway:
    carrier: str

    def __init__(
        self,
        now: Callable[[], datetime] | None = None,
        create_label_id: Callable[[], str] | None = None,
    ):
        self.should_succeed = True
        self.failure_reason = "Carrier unavailable"
        self.now = now or (lambda: datetime.now(UTC))
        self.create_label_id = create_label_id
        self.issued_for: list[str] = []

    def configure(self, should_succeed: bool = True, failure_reason: str = "Carrier unavailable"):
        """Configure the fake carrier behavior for testing."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def _check(self, order: Order) -> None:
        self.issued_for.append(order.order_id)
        if not self.should_succeed:
            raise LabelIssuanceFailed(self.carrier, self.failure_reason)


class FakeClickPostGateway(_FakeGateway, ClickPostGateway):
    """Fake ClickPost that always succeeds by default."""

    carrier = ShippingMethod.CLICK_POST.value

    async def issue(self, order: Order) -> ClickPostLabel:
        self._check(order)
        label_id = self.create_label_id() if self.create_label_id else f"LBL-CP-{uuid4()}"
        return ClickPostLabel.create(
            label_id=label_id,
            order_id=order.order_id,
            pdf_data=FAKE_PDF,
            tracking_number=f"FAKE-{uuid4().hex[:12].upper()}",
            issued_at=self.now(),
        )


class FakeYamatoCompactGateway(_FakeGateway, YamatoCompactGateway):
    """Fake Yamato Compact that always succeeds by default."""

    carrier = ShippingMethod.YAMATO_COMPACT.value

    async def issue(self, order: Order) -> YamatoCompactLabel:
        self._check(order)
        label_id = self.create_label_id() if self.create_label_id else f"LBL-YM-{uuid4()}"
        return YamatoCompactLabel.create(
            label_id=label_id,
            order_id=order.order_id,
            qr_code=f"FAKE-QR-{order.order_id}",
            waybill_number=f"FAKE-{uuid4().hex[:12].upper()}",
            issued_at=self.now(),
        )
