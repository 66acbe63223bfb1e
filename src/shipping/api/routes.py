"""FastAPI routes for the Shipping domain."""

import os

import structlog
from fastapi import APIRouter, HTTPException
from fastapi.responses import JSONResponse

from shipping.api.schemas import (
    CarrierConfigResponse,
    ConfigureCarrierRequest,
    DryRunResponse,
    ErrorBody,
    ErrorResponse,
    IssueLabelRequest,
)
from shipping.carrier import get_label_issuer
from shipping.carrier.dispatcher import ShippingLabelIssuer
from shipping.carrier.errors import CarrierNotConfigured, LabelIssuanceFailed
from shipping.carrier.fake_adapter import FakeClickPostGateway, FakeYamatoCompactGateway
from shipping.carrier.pages.errors import ClickPostDryRunCompleted
from shipping.label.errors import InvalidLabelIssueInput, InvalidLabelIssueOperation, OrderNotFound
from shipping.label.issuance import IssueLabelInput, IssueLabelResult, IssueShippingLabel
from shipping.label.method import ShippingMethod
from shipping.label.repository import DomainLabelRepository
from shipping.order.repository import DomainOrderRepository

logger = structlog.get_logger(__name__)

DRY_RUN_MESSAGE = "ドライラン完了: 確認画面まで到達しました。ブラウザで支払いを手動で完了してください。"


def _error(status_code: int, code: str, message: str) -> JSONResponse:
    body = ErrorResponse(error=ErrorBody(code=code, message=message))
    return JSONResponse(status_code=status_code, content=body.model_dump())


def get_issue_label_use_case() -> IssueShippingLabel:
    """Build the issuance use case against the configured issuer."""
    return IssueShippingLabel(DomainOrderRepository(), DomainLabelRepository(), get_label_issuer())


# ---------------------------------------------------------------------------
# Label Router
# ---------------------------------------------------------------------------
label_router = APIRouter(prefix="/orders", tags=["labels"])


@label_router.post(
    "/{order_id}/labels",
    response_model=IssueLabelResult | DryRunResponse,
    response_model_exclude_none=True,
)
async def issue_label(order_id: str, body: IssueLabelRequest):
    """Issue a shipping label for a pending order."""
    shipping_method = (body.shipping_method or "").strip()
    if not shipping_method:
        return _error(400, "VALIDATION_ERROR", "配送方法は必須です")

    try:
        use_case = get_issue_label_use_case()
        return await use_case.execute(IssueLabelInput(order_id=order_id, shipping_method=shipping_method))
    except ClickPostDryRunCompleted:
        logger.info("ClickPost dry run completed", order_id=order_id)
        return DryRunResponse(message=DRY_RUN_MESSAGE)
    except OrderNotFound as exc:
        return _error(404, "NOT_FOUND", str(exc))
    except InvalidLabelIssueInput as exc:
        return _error(400, "VALIDATION_ERROR", str(exc))
    except InvalidLabelIssueOperation as exc:
        return _error(409, "CONFLICT", str(exc))
    except (LabelIssuanceFailed, CarrierNotConfigured) as exc:
        logger.error("Label issuance failed", order_id=order_id, error=str(exc))
        return _error(503, "EXTERNAL_SERVICE_ERROR", str(exc))


# ---------------------------------------------------------------------------
# Carrier Router
# ---------------------------------------------------------------------------
carrier_router = APIRouter(prefix="/carrier", tags=["carrier"])


@carrier_router.post("/configure", response_model=CarrierConfigResponse)
async def configure_carrier(body: ConfigureCarrierRequest) -> CarrierConfigResponse:
    """Configure a fake carrier's behavior (non-production only)."""
    if os.environ.get("PROTEAN_ENV") == "production":
        raise HTTPException(status_code=403, detail="Carrier configuration not available in production")

    try:
        method = ShippingMethod.parse(body.shipping_method)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    issuer = get_label_issuer()
    gateway = None
    if isinstance(issuer, ShippingLabelIssuer):
        gateway = issuer.click_post if method is ShippingMethod.CLICK_POST else issuer.yamato_compact
    if not isinstance(gateway, (FakeClickPostGateway, FakeYamatoCompactGateway)):
        raise HTTPException(status_code=400, detail="Carrier configuration only available for fake carriers")

    gateway.configure(
        should_succeed=body.should_succeed,
        failure_reason=body.failure_reason,
    )
    return CarrierConfigResponse(
        carrier=type(gateway).__name__,
        should_succeed=gateway.should_succeed,
        failure_reason=gateway.failure_reason,
    )
