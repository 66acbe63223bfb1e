"""Label issuance use case.

Validates the order and the requested method, asks the configured issuer for
a label and persists it. Carrier errors propagate unchanged; nothing is
persisted unless the carrier flow completed.
"""

import structlog
from pydantic import BaseModel

from shipping.carrier.port import LabelIssuer
from shipping.label.click_post import ClickPostLabel
from shipping.label.errors import InvalidLabelIssueInput, InvalidLabelIssueOperation, OrderNotFound
from shipping.label.label import ShippingLabel
from shipping.label.method import ShippingMethod
from shipping.label.repository import LabelRepository
from shipping.label.yamato_compact import YamatoCompactLabel
from shipping.order.repository import OrderRepository

logger = structlog.get_logger(__name__)

DUPLICATE_LABEL_WARNING = "同一注文に既存の伝票があります（重複発行）"


class IssueLabelInput(BaseModel):
    order_id: str
    shipping_method: str


class IssueLabelResult(BaseModel):
    order_id: str
    label_id: str
    shipping_method: str
    label_type: str
    status: str
    issued_at: str
    expires_at: str | None = None
    pdf_data: str | None = None
    tracking_number: str | None = None
    qr_code: str | None = None
    waybill_number: str | None = None
    warnings: list[str] | None = None

    @classmethod
    def from_label(cls, label: ShippingLabel, method: ShippingMethod, warnings: list[str]) -> "IssueLabelResult":
        result = cls(
            order_id=label.order_id,
            label_id=label.label_id,
            shipping_method=method.value,
            label_type=label.label_type,
            status=label.status,
            issued_at=label.issued_at.isoformat(),
            warnings=warnings or None,
        )
        if isinstance(label, ClickPostLabel):
            result.pdf_data = label.pdf_data
            result.tracking_number = label.tracking_number
        elif isinstance(label, YamatoCompactLabel):
            result.expires_at = label.expires_at.isoformat()
            result.qr_code = label.qr_code
            result.waybill_number = label.waybill_number
        return result


class IssueShippingLabel:
    def __init__(
        self,
        order_repository: OrderRepository,
        label_repository: LabelRepository,
        issuer: LabelIssuer,
    ):
        self.order_repository = order_repository
        self.label_repository = label_repository
        self.issuer = issuer

    async def execute(self, request: IssueLabelInput) -> IssueLabelResult:
        """Issue and store a label for a pending order.

        Raises:
            OrderNotFound: no order has ``request.order_id``.
            InvalidLabelIssueOperation: the order is no longer pending.
            InvalidLabelIssueInput: the shipping method is not supported.
        """
        order = self.order_repository.find_by_id(request.order_id)
        if order is None:
            raise OrderNotFound(request.order_id)
        if not order.is_pending():
            raise InvalidLabelIssueOperation("発送済み注文には伝票を発行できません")

        try:
            method = ShippingMethod.parse(request.shipping_method)
        except ValueError as exc:
            raise InvalidLabelIssueInput(str(exc)) from exc

        warnings: list[str] = []
        existing = self.label_repository.find_by_order_id(order.order_id)
        if existing:
            logger.warning("Order already has labels", order_id=order.order_id, existing=len(existing))
            warnings.append(DUPLICATE_LABEL_WARNING)

        label = await self.issuer.issue(order, method)
        self.label_repository.save(label)
        logger.info("Label issued", order_id=order.order_id, label_id=label.label_id, carrier=method.value)

        return IssueLabelResult.from_label(label, method, warnings)
