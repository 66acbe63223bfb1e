"""Yamato Compact label — a QR waybill valid for a fixed 14-day window.

The validity window is a carrier-wide policy, so ``expires_at`` is always
derived from ``issued_at`` and never taken from anything read off the page.
"""

from datetime import UTC, datetime, timedelta

from protean.exceptions import ValidationError
from protean.fields import DateTime, String, Text

from shipping.domain import shipping
from shipping.label.label import LabelStatus, LabelType

EXPIRY_DAYS = 14


@shipping.aggregate
class YamatoCompactLabel:
    label_id = String(identifier=True, max_length=100)
    order_id = String(required=True, max_length=100)
    label_type = String(choices=LabelType, default=LabelType.YAMATO_COMPACT.value)
    status = String(choices=LabelStatus, default=LabelStatus.ISSUED.value)
    issued_at = DateTime(required=True)
    expires_at = DateTime(required=True)
    qr_code = Text(required=True)  # opaque payload or data URI
    waybill_number = String(required=True, max_length=100)

    @classmethod
    def create(
        cls,
        label_id: str,
        order_id: str,
        qr_code: str,
        waybill_number: str,
        issued_at: datetime,
    ):
        """Record a freshly issued Yamato Compact label."""
        errors = {}
        if not label_id or not label_id.strip():
            errors["label_id"] = ["Label ID cannot be blank"]
        if not qr_code or not qr_code.strip():
            errors["qr_code"] = ["QR code cannot be blank"]
        if not waybill_number or not waybill_number.strip():
            errors["waybill_number"] = ["Waybill number cannot be blank"]
        if errors:
            raise ValidationError(errors)

        return cls(
            label_id=label_id.strip(),
            order_id=order_id,
            label_type=LabelType.YAMATO_COMPACT.value,
            status=LabelStatus.ISSUED.value,
            issued_at=issued_at,
            expires_at=issued_at + timedelta(days=EXPIRY_DAYS),
            qr_code=qr_code,
            waybill_number=waybill_number.strip(),
        )

    def is_expired(self, now: datetime | None = None) -> bool:
        return self.expires_at < (now or datetime.now(UTC))
