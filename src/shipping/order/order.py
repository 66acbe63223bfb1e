"""Order aggregate — the read-only input to label issuance.

Orders are discovered and maintained elsewhere; the shipping context only
reads them to decide whether a label may be issued and to fill the carrier
forms with the buyer's address and the product description.
"""

from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, String, ValueObject

from shipping.domain import shipping


class OrderStatus(Enum):
    PENDING = "pending"
    SHIPPED = "shipped"


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@shipping.value_object(part_of="Order")
class Buyer:
    """Recipient of the parcel — name, postal address and optional phone."""

    name = String(required=True, max_length=100)
    postal_code = String(required=True, max_length=8)
    prefecture = String(required=True, max_length=10)
    city = String(required=True, max_length=100)
    street = String(required=True, max_length=200)
    building = String(max_length=200)
    phone = String(max_length=20)

    @property
    def postal_code_digits(self) -> str:
        return self.postal_code.replace("-", "").strip()


@shipping.value_object(part_of="Order")
class Product:
    name = String(required=True, max_length=200)
    price = Float(min_value=0.0)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@shipping.aggregate
class Order:
    order_id = String(identifier=True, max_length=100)
    buyer = ValueObject(Buyer, required=True)
    product = ValueObject(Product, required=True)
    status = String(
        choices=OrderStatus,
        default=OrderStatus.PENDING.value,
    )
    ordered_at = DateTime()

    @classmethod
    def create(cls, order_id: str, buyer: Buyer, product: Product, ordered_at: datetime | None = None):
        """Register a newly discovered order in the pending state."""
        if not order_id or not order_id.strip():
            raise ValidationError({"order_id": ["Order ID cannot be blank"]})
        return cls(
            order_id=order_id.strip(),
            buyer=buyer,
            product=product,
            status=OrderStatus.PENDING.value,
            ordered_at=ordered_at or datetime.now(UTC),
        )

    def is_pending(self) -> bool:
        return OrderStatus(self.status) == OrderStatus.PENDING
