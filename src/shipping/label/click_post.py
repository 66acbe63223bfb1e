"""ClickPost label — a printable PDF label with a Japan Post tracking number."""

from datetime import datetime

from protean.exceptions import ValidationError
from protean.fields import DateTime, String, Text

from shipping.domain import shipping
from shipping.label.label import LabelStatus, LabelType


@shipping.aggregate
class ClickPostLabel:
    label_id = String(identifier=True, max_length=100)
    order_id = String(required=True, max_length=100)
    label_type = String(choices=LabelType, default=LabelType.CLICK_POST.value)
    status = String(choices=LabelStatus, default=LabelStatus.ISSUED.value)
    issued_at = DateTime(required=True)
    pdf_data = Text(required=True)  # base64-encoded PDF
    tracking_number = String(required=True, max_length=50)

    @classmethod
    def create(
        cls,
        label_id: str,
        order_id: str,
        pdf_data: str,
        tracking_number: str,
        issued_at: datetime,
    ):
        """Record a freshly issued ClickPost label."""
        errors = {}
        if not label_id or not label_id.strip():
            errors["label_id"] = ["Label ID cannot be blank"]
        if not pdf_data or not pdf_data.strip():
            errors["pdf_data"] = ["PDF data cannot be blank"]
        if not tracking_number or not tracking_number.strip():
            errors["tracking_number"] = ["Tracking number cannot be blank"]
        if errors:
            raise ValidationError(errors)

        return cls(
            label_id=label_id.strip(),
            order_id=order_id,
            label_type=LabelType.CLICK_POST.value,
            status=LabelStatus.ISSUED.value,
            issued_at=issued_at,
            pdf_data=pdf_data,
            tracking_number=tracking_number.strip(),
        )

    def is_expired(self, now: datetime | None = None) -> bool:
        """ClickPost labels carry no validity window."""
        return False
