"""ClickPost gateway — owns the browser session for one ClickPost issuance."""

from collections.abc import Callable
from datetime import UTC, datetime
from uuid import uuid4

import structlog

from shipping.carrier.browser import BrowserFactory, browser_session
from shipping.carrier.errors import LabelIssuanceFailed
from shipping.carrier.pages.click_post import ClickPostCredentials, ClickPostPage, ClickPostPageOptions
from shipping.carrier.pages.errors import ClickPostDryRunCompleted
from shipping.carrier.port import ClickPostGateway
from shipping.label.click_post import ClickPostLabel
from shipping.label.method import ShippingMethod
from shipping.order.order import Order

logger = structlog.get_logger(__name__)

CARRIER = ShippingMethod.CLICK_POST.value
FAILURE_PREFIX = "クリックポスト伝票の発行に失敗しました"


def _default_label_id() -> str:
    return f"LBL-CP-{uuid4()}"


class ClickPostAdapter(ClickPostGateway):
    def __init__(
        self,
        browser_factory: BrowserFactory,
        credentials: ClickPostCredentials,
        options: ClickPostPageOptions | None = None,
        now: Callable[[], datetime] | None = None,
        create_label_id: Callable[[], str] | None = None,
    ):
        self.browser_factory = browser_factory
        self.credentials = credentials
        self.options = options or ClickPostPageOptions()
        self.now = now or (lambda: datetime.now(UTC))
        self.create_label_id = create_label_id or _default_label_id

    async def issue(self, order: Order) -> ClickPostLabel:
        try:
            async with browser_session(self.browser_factory, CARRIER) as session:
                page = await session.new_page()
                result = await ClickPostPage(page, self.options).issue_label(order, self.credentials)
                label = ClickPostLabel.create(
                    label_id=self.create_label_id(),
                    order_id=order.order_id,
                    pdf_data=result.pdf_data,
                    tracking_number=result.tracking_number,
                    issued_at=self.now(),
                )
        except ClickPostDryRunCompleted:
            raise
        except Exception as exc:
            logger.error("ClickPost issuance failed", order_id=order.order_id, error=str(exc))
            raise LabelIssuanceFailed(CARRIER, f"{FAILURE_PREFIX}: {exc}") from exc

        logger.info(
            "ClickPost label issued",
            order_id=order.order_id,
            label_id=label.label_id,
            tracking_number=label.tracking_number,
        )
        return label
