"""Integration tests for the label issuance API via TestClient."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from protean.integrations.fastapi import register_exception_handlers
from shipping.api.routes import carrier_router, label_router
from shipping.carrier.errors import CarrierNotConfigured
from shipping.carrier.pages.errors import ClickPostDryRunCompleted
from shipping.carrier.port import LabelIssuer
from shipping.order.repository import DomainOrderRepository


class RaisingIssuer(LabelIssuer):
    def __init__(self, error):
        self.error = error

    async def issue(self, order, method):
        raise self.error


@pytest.fixture()
def client():
    app = FastAPI()
    app.include_router(label_router)
    app.include_router(carrier_router)
    register_exception_handlers(app)
    return TestClient(app)


@pytest.fixture(autouse=True)
def orders(make_order):
    repository = DomainOrderRepository()
    repository.add(make_order(order_id="ORD-001"))
    repository.add(make_order(order_id="ORD-SHIPPED", shipped=True))
    return repository


def _issue(client, order_id="ORD-001", **body):
    return client.post(f"/orders/{order_id}/labels", json=body)


class TestIssueLabelAPI:
    def test_click_post_label_returns_200(self, client):
        response = _issue(client, shipping_method="click_post")
        assert response.status_code == 200
        data = response.json()
        assert data["order_id"] == "ORD-001"
        assert data["label_id"].startswith("LBL-CP-")
        assert data["label_type"] == "click_post"
        assert data["status"] == "issued"
        assert data["tracking_number"].startswith("FAKE-")
        assert "qr_code" not in data
        assert "warnings" not in data

    def test_yamato_label_includes_expiry(self, client):
        response = _issue(client, shipping_method="yamato_compact")
        assert response.status_code == 200
        data = response.json()
        assert data["label_type"] == "yamato_compact"
        assert data["expires_at"] > data["issued_at"]
        assert "pdf_data" not in data

    def test_reissue_returns_duplicate_warning(self, client):
        _issue(client, shipping_method="click_post")
        response = _issue(client, shipping_method="click_post")
        assert response.status_code == 200
        assert response.json()["warnings"] == ["同一注文に既存の伝票があります（重複発行）"]

    def test_method_is_trimmed(self, client):
        response = _issue(client, shipping_method="  click_post  ")
        assert response.status_code == 200


class TestIssueLabelAPIErrors:
    @pytest.mark.parametrize("body", [{}, {"shipping_method": ""}, {"shipping_method": "   "}])
    def test_missing_method_returns_400(self, client, body):
        response = _issue(client, **body)
        assert response.status_code == 400
        assert response.json() == {"error": {"code": "VALIDATION_ERROR", "message": "配送方法は必須です"}}

    def test_unknown_method_returns_400(self, client):
        response = _issue(client, shipping_method="sagawa")
        assert response.status_code == 400
        error = response.json()["error"]
        assert error["code"] == "VALIDATION_ERROR"
        assert "不正な配送方法です: sagawa" in error["message"]

    def test_unknown_order_returns_404(self, client):
        response = _issue(client, order_id="ORD-404", shipping_method="click_post")
        assert response.status_code == 404
        assert response.json()["error"] == {"code": "NOT_FOUND", "message": "対象注文が見つかりません: ORD-404"}

    def test_shipped_order_returns_409(self, client):
        response = _issue(client, order_id="ORD-SHIPPED", shipping_method="click_post")
        assert response.status_code == 409
        assert response.json()["error"]["code"] == "CONFLICT"

    def test_carrier_failure_returns_503(self, client):
        client.post(
            "/carrier/configure",
            json={"shipping_method": "click_post", "should_succeed": False, "failure_reason": "Carrier down"},
        )
        response = _issue(client, shipping_method="click_post")
        assert response.status_code == 503
        assert response.json()["error"] == {"code": "EXTERNAL_SERVICE_ERROR", "message": "Carrier down"}

    def test_failure_on_one_carrier_leaves_the_other_working(self, client):
        client.post(
            "/carrier/configure",
            json={"shipping_method": "click_post", "should_succeed": False},
        )
        response = _issue(client, shipping_method="yamato_compact")
        assert response.status_code == 200

    def test_unconfigured_carrier_returns_503(self, client, monkeypatch):
        issuer = RaisingIssuer(CarrierNotConfigured("yamato_compact is not configured"))
        monkeypatch.setattr("shipping.api.routes.get_label_issuer", lambda: issuer)
        response = _issue(client, shipping_method="yamato_compact")
        assert response.status_code == 503
        assert response.json()["error"]["code"] == "EXTERNAL_SERVICE_ERROR"

    def test_dry_run_returns_200(self, client, monkeypatch):
        issuer = RaisingIssuer(ClickPostDryRunCompleted("ORD-001"))
        monkeypatch.setattr("shipping.api.routes.get_label_issuer", lambda: issuer)
        response = _issue(client, shipping_method="click_post")
        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["dry_run"] is True
        assert data["message"].startswith("ドライラン完了")


class TestConfigureCarrierAPI:
    def test_configure_fake_gateway(self, client):
        response = client.post(
            "/carrier/configure",
            json={"shipping_method": "yamato_compact", "should_succeed": False, "failure_reason": "Down"},
        )
        assert response.status_code == 200
        assert response.json() == {
            "carrier": "FakeYamatoCompactGateway",
            "should_succeed": False,
            "failure_reason": "Down",
        }

    def test_unknown_method_rejected(self, client):
        response = client.post("/carrier/configure", json={"shipping_method": "sagawa"})
        assert response.status_code == 400

    def test_not_available_in_production(self, client, monkeypatch):
        monkeypatch.setenv("PROTEAN_ENV", "production")
        response = client.post("/carrier/configure", json={"shipping_method": "click_post"})
        assert response.status_code == 403
