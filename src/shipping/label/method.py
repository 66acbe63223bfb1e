"""Supported shipping methods — the closed set the issuer dispatches over."""

from enum import Enum


class ShippingMethod(Enum):
    CLICK_POST = "click_post"
    YAMATO_COMPACT = "yamato_compact"

    @classmethod
    def parse(cls, value: str) -> "ShippingMethod":
        """Return the method for ``value`` or raise ``ValueError`` naming it."""
        try:
            return cls((value or "").strip())
        except ValueError:
            supported = " / ".join(m.value for m in cls)
            raise ValueError(f"不正な配送方法です: {value}（{supported} のみ対応）") from None
