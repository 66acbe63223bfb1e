"""Shipping label shape shared by the carrier-specific label aggregates.

A label is the artifact proving postage was purchased for an order. Labels
are created exactly once per successful carrier issuance and are never
updated or deleted afterwards; an order may accumulate several labels when
it is re-issued.

Each carrier's label is its own aggregate. ``ShippingLabel`` describes what
they have in common so ports and repositories can be typed against it.
"""

from datetime import datetime
from enum import Enum
from typing import Protocol, runtime_checkable


class LabelType(Enum):
    CLICK_POST = "click_post"
    YAMATO_COMPACT = "yamato_compact"


class LabelStatus(Enum):
    ISSUED = "issued"


@runtime_checkable
class ShippingLabel(Protocol):
    """Any issued label aggregate.

    Concrete labels also declare ``label_id``, ``order_id``, ``label_type``,
    ``status`` and ``issued_at`` fields; ``isinstance`` checks ``is_expired``
    only.
    """

    def is_expired(self, now: datetime | None = None) -> bool: ...
