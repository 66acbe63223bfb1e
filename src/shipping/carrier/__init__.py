"""Carrier adapter abstraction — pluggable label issuance per shipping method."""

from shipping.carrier.errors import CarrierNotConfigured
from shipping.carrier.port import ClickPostGateway, LabelIssuer, YamatoCompactGateway

_issuer_instance = None


class UnconfiguredGateway(ClickPostGateway, YamatoCompactGateway):
    """Stands in for a carrier whose credentials are not set.

    Lets the other carrier keep working; issuing through this one reports
    the missing settings.
    """

    def __init__(self, carrier: str, missing: str):
        self.carrier = carrier
        self.missing = missing

    async def issue(self, order):
        raise CarrierNotConfigured(f"{self.carrier} is not configured: set {self.missing}")


def build_label_issuer(settings=None) -> LabelIssuer:
    """Wire the issuer for ``settings`` (read from the environment by default)."""
    from shipping.carrier.dispatcher import ShippingLabelIssuer
    from shipping.carrier.settings import CarrierSettings

    settings = settings or CarrierSettings.from_env()

    if settings.adapter == "fake":
        from shipping.carrier.fake_adapter import FakeClickPostGateway, FakeYamatoCompactGateway

        return ShippingLabelIssuer(FakeClickPostGateway(), FakeYamatoCompactGateway())

    if settings.adapter == "playwright":
        from shipping.carrier.browser import ChromiumBrowserFactory
        from shipping.carrier.click_post_adapter import ClickPostAdapter
        from shipping.carrier.yamato_compact_adapter import YamatoCompactAdapter

        factory = ChromiumBrowserFactory(
            headless=settings.headless,
            timeout_ms=settings.launch_timeout_ms,
            ignore_https_errors=settings.ignore_https_errors,
        )
        click_post = (
            ClickPostAdapter(factory, settings.click_post, settings.click_post_options)
            if settings.click_post_ready
            else UnconfiguredGateway("click_post", "CLICKPOST_EMAIL and CLICKPOST_PASSWORD")
        )
        yamato_compact = (
            YamatoCompactAdapter(factory, settings.yamato)
            if settings.yamato is not None
            else UnconfiguredGateway("yamato_compact", "YAMATO_MEMBER_ID and YAMATO_PASSWORD")
        )
        return ShippingLabelIssuer(click_post, yamato_compact)

    raise CarrierNotConfigured(f"Unknown carrier adapter: {settings.adapter}")


def get_label_issuer() -> LabelIssuer:
    """Return the configured label issuer (singleton).

    Uses the fake gateways by default. In production, set
    CARRIER_ADAPTER=playwright and the carrier credentials.
    """
    global _issuer_instance
    if _issuer_instance is None:
        _issuer_instance = build_label_issuer()
    return _issuer_instance


def reset_label_issuer():
    """Reset the issuer singleton (useful for testing)."""
    global _issuer_instance
    _issuer_instance = None
