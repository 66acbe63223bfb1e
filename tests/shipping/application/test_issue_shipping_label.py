"""Application tests for the IssueShippingLabel use case."""

from datetime import UTC, datetime

import pytest
from shipping.carrier.errors import LabelIssuanceFailed
from shipping.carrier.port import LabelIssuer
from shipping.label.click_post import ClickPostLabel
from shipping.label.errors import InvalidLabelIssueInput, InvalidLabelIssueOperation, OrderNotFound
from shipping.label.issuance import (
    DUPLICATE_LABEL_WARNING,
    IssueLabelInput,
    IssueShippingLabel,
)
from shipping.label.method import ShippingMethod
from shipping.label.repository import DomainLabelRepository
from shipping.label.yamato_compact import YamatoCompactLabel
from shipping.order.repository import DomainOrderRepository

ISSUED_AT = datetime(2024, 1, 15, 10, 0, tzinfo=UTC)


class StubIssuer(LabelIssuer):
    """Returns fixed labels and records every call."""

    def __init__(self, error=None):
        self.calls = []
        self.error = error
        self.sequence = 0

    async def issue(self, order, method):
        self.calls.append((order.order_id, method))
        if self.error is not None:
            raise self.error
        self.sequence += 1
        if method is ShippingMethod.CLICK_POST:
            return ClickPostLabel.create(
                label_id=f"LBL-CP-{self.sequence:03d}",
                order_id=order.order_id,
                pdf_data="JVBERi0xLjQ=",
                tracking_number="CP123456789JP",
                issued_at=ISSUED_AT,
            )
        return YamatoCompactLabel.create(
            label_id=f"LBL-YM-{self.sequence:03d}",
            order_id=order.order_id,
            qr_code="QR-DATA-123",
            waybill_number="4000-1111-2222",
            issued_at=ISSUED_AT,
        )


@pytest.fixture()
def orders(make_order):
    repository = DomainOrderRepository()
    repository.add(make_order(order_id="ORD-001"))
    repository.add(make_order(order_id="ORD-002"))
    repository.add(make_order(order_id="ORD-SHIPPED", shipped=True))
    return repository


@pytest.fixture()
def labels():
    return DomainLabelRepository()


@pytest.fixture()
def issuer():
    return StubIssuer()


@pytest.fixture()
def use_case(orders, labels, issuer):
    return IssueShippingLabel(orders, labels, issuer)


class TestIssueClickPostLabel:
    def test_issues_and_returns_click_post_result(self, run, use_case):
        result = run(use_case.execute(IssueLabelInput(order_id="ORD-001", shipping_method="click_post")))
        assert result.order_id == "ORD-001"
        assert result.label_id == "LBL-CP-001"
        assert result.shipping_method == "click_post"
        assert result.label_type == "click_post"
        assert result.status == "issued"
        assert result.tracking_number == "CP123456789JP"
        assert result.pdf_data == "JVBERi0xLjQ="
        assert result.issued_at == ISSUED_AT.isoformat()
        assert result.expires_at is None
        assert result.qr_code is None
        assert result.warnings is None

    def test_label_is_persisted(self, run, use_case, labels):
        run(use_case.execute(IssueLabelInput(order_id="ORD-001", shipping_method="click_post")))
        stored = labels.find_by_order_id("ORD-001")
        assert [label.label_id for label in stored] == ["LBL-CP-001"]
        assert labels.find_by_id("LBL-CP-001").tracking_number == "CP123456789JP"

    def test_result_omits_carrier_fields_of_other_method(self, run, use_case):
        result = run(use_case.execute(IssueLabelInput(order_id="ORD-001", shipping_method="click_post")))
        dumped = result.model_dump(exclude_none=True)
        assert "qr_code" not in dumped
        assert "waybill_number" not in dumped
        assert "warnings" not in dumped


class TestIssueYamatoCompactLabel:
    def test_issues_with_expiry(self, run, use_case, labels):
        result = run(use_case.execute(IssueLabelInput(order_id="ORD-002", shipping_method="yamato_compact")))
        assert result.label_type == "yamato_compact"
        assert result.qr_code == "QR-DATA-123"
        assert result.waybill_number == "4000-1111-2222"
        assert result.expires_at == "2024-01-29T10:00:00+00:00"
        assert result.tracking_number is None
        assert labels.find_by_id(result.label_id).expires_at is not None


class TestDuplicateIssuance:
    def test_second_issue_warns_but_succeeds(self, run, use_case, labels):
        first = run(use_case.execute(IssueLabelInput(order_id="ORD-001", shipping_method="click_post")))
        second = run(use_case.execute(IssueLabelInput(order_id="ORD-001", shipping_method="click_post")))
        assert first.warnings is None
        assert second.warnings == [DUPLICATE_LABEL_WARNING]
        assert second.label_id != first.label_id
        assert len(labels.find_by_order_id("ORD-001")) == 2

    def test_labels_of_both_carriers_count(self, run, use_case):
        run(use_case.execute(IssueLabelInput(order_id="ORD-001", shipping_method="yamato_compact")))
        result = run(use_case.execute(IssueLabelInput(order_id="ORD-001", shipping_method="click_post")))
        assert result.warnings == ["同一注文に既存の伝票があります（重複発行）"]


class TestIssuanceRejected:
    def test_unknown_order(self, run, use_case, issuer):
        with pytest.raises(OrderNotFound) as exc_info:
            run(use_case.execute(IssueLabelInput(order_id="ORD-404", shipping_method="click_post")))
        assert str(exc_info.value) == "対象注文が見つかりません: ORD-404"
        assert issuer.calls == []

    def test_shipped_order(self, run, use_case, issuer):
        with pytest.raises(InvalidLabelIssueOperation):
            run(use_case.execute(IssueLabelInput(order_id="ORD-SHIPPED", shipping_method="click_post")))
        assert issuer.calls == []

    def test_unknown_method_never_reaches_a_gateway(self, run, use_case, issuer, labels):
        with pytest.raises(InvalidLabelIssueInput) as exc_info:
            run(use_case.execute(IssueLabelInput(order_id="ORD-001", shipping_method="sagawa")))
        assert "sagawa" in str(exc_info.value)
        assert issuer.calls == []
        assert labels.find_by_order_id("ORD-001") == []

    def test_carrier_failure_propagates_and_persists_nothing(self, run, orders, labels):
        error = LabelIssuanceFailed("click_post", "クリックポスト伝票の発行に失敗しました: [payment] ...")
        use_case = IssueShippingLabel(orders, labels, StubIssuer(error=error))
        with pytest.raises(LabelIssuanceFailed) as exc_info:
            run(use_case.execute(IssueLabelInput(order_id="ORD-001", shipping_method="click_post")))
        assert exc_info.value is error
        assert labels.find_by_order_id("ORD-001") == []
