"""Yamato Compact gateway — owns the browser session for one Yamato issuance."""

from collections.abc import Callable
from datetime import UTC, datetime
from uuid import uuid4

import structlog

from shipping.carrier.browser import BrowserFactory, browser_session
from shipping.carrier.errors import LabelIssuanceFailed
from shipping.carrier.pages.yamato import YamatoCompactPage, YamatoCredentials
from shipping.carrier.port import YamatoCompactGateway
from shipping.label.method import ShippingMethod
from shipping.label.yamato_compact import YamatoCompactLabel
from shipping.order.order import Order

logger = structlog.get_logger(__name__)

CARRIER = ShippingMethod.YAMATO_COMPACT.value
FAILURE_PREFIX = "宅急便コンパクト伝票の発行に失敗しました"


def _default_label_id() -> str:
    return f"LBL-YM-{uuid4()}"


class YamatoCompactAdapter(YamatoCompactGateway):
    def __init__(
        self,
        browser_factory: BrowserFactory,
        credentials: YamatoCredentials,
        now: Callable[[], datetime] | None = None,
        create_label_id: Callable[[], str] | None = None,
    ):
        self.browser_factory = browser_factory
        self.credentials = credentials
        self.now = now or (lambda: datetime.now(UTC))
        self.create_label_id = create_label_id or _default_label_id

    async def issue(self, order: Order) -> YamatoCompactLabel:
        try:
            async with browser_session(self.browser_factory, CARRIER) as session:
                page = await session.new_page()
                result = await YamatoCompactPage(page).issue_label(order, self.credentials)
                label = YamatoCompactLabel.create(
                    label_id=self.create_label_id(),
                    order_id=order.order_id,
                    qr_code=result.qr_code,
                    waybill_number=result.waybill_number,
                    issued_at=self.now(),
                )
        except Exception as exc:
            logger.error("Yamato Compact issuance failed", order_id=order.order_id, error=str(exc))
            raise LabelIssuanceFailed(CARRIER, f"{FAILURE_PREFIX}: {exc}") from exc

        logger.info(
            "Yamato Compact label issued",
            order_id=order.order_id,
            label_id=label.label_id,
            waybill_number=label.waybill_number,
            expires_at=label.expires_at.isoformat(),
        )
        return label
