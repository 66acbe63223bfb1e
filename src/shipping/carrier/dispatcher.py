"""Issuer dispatcher — routes an issuance to the gateway for its method.

This is the one place that must stay exhaustive over ``ShippingMethod``:
a new member that is not handled here is reported by the type checker at
the ``assert_never`` call and fails loudly at runtime.
"""

from typing import assert_never

from shipping.carrier.port import ClickPostGateway, LabelIssuer, YamatoCompactGateway
from shipping.label.label import ShippingLabel
from shipping.label.method import ShippingMethod
from shipping.order.order import Order


class ShippingLabelIssuer(LabelIssuer):
    def __init__(self, click_post: ClickPostGateway, yamato_compact: YamatoCompactGateway):
        self.click_post = click_post
        self.yamato_compact = yamato_compact

    async def issue(self, order: Order, method: ShippingMethod) -> ShippingLabel:
        match method:
            case ShippingMethod.CLICK_POST:
                return await self.click_post.issue(order)
            case ShippingMethod.YAMATO_COMPACT:
                return await self.yamato_compact.issue(order)
            case _:
                assert_never(method)
