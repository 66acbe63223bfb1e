"""Carrier settings read from the process environment."""

import os
from collections.abc import Mapping
from dataclasses import dataclass, field

from shipping.carrier.errors import CarrierNotConfigured
from shipping.carrier.pages.click_post import ClickPostCredentials, ClickPostPageOptions
from shipping.carrier.pages.yamato import YamatoCredentials

DEFAULT_MANUAL_LOGIN_TIMEOUT_MS = 300_000
_TRUTHY = {"1", "true", "yes", "on"}


def _flag(env: Mapping[str, str], name: str, default: bool = False) -> bool:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in _TRUTHY


def _positive_ms(env: Mapping[str, str], name: str, default: float | None = None) -> float | None:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError:
        raise CarrierNotConfigured(f"{name} must be a number of milliseconds, got {raw!r}") from None
    if value <= 0:
        raise CarrierNotConfigured(f"{name} must be positive, got {raw!r}")
    return value


@dataclass(frozen=True)
class CarrierSettings:
    adapter: str = "fake"
    headless: bool = True
    launch_timeout_ms: float | None = None
    ignore_https_errors: bool = False
    click_post: ClickPostCredentials = field(default_factory=ClickPostCredentials)
    click_post_options: ClickPostPageOptions = field(default_factory=ClickPostPageOptions)
    yamato: YamatoCredentials | None = None

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> "CarrierSettings":
        env = os.environ if env is None else env

        manual_login_ms = _positive_ms(env, "CLICKPOST_MANUAL_LOGIN_TIMEOUT_MS", DEFAULT_MANUAL_LOGIN_TIMEOUT_MS)
        click_post_options = ClickPostPageOptions(
            manual_login=_flag(env, "CLICKPOST_MANUAL_LOGIN"),
            manual_login_timeout_s=manual_login_ms / 1000,
            dry_run=_flag(env, "CLICKPOST_DRY_RUN"),
        )

        member_id = env.get("YAMATO_MEMBER_ID", "").strip()
        password = env.get("YAMATO_PASSWORD", "").strip()
        yamato = YamatoCredentials(member_id=member_id, password=password) if member_id and password else None

        return cls(
            adapter=env.get("CARRIER_ADAPTER", "fake").strip().lower() or "fake",
            headless=_flag(env, "PLAYWRIGHT_HEADLESS", default=True),
            launch_timeout_ms=_positive_ms(env, "PLAYWRIGHT_LAUNCH_TIMEOUT_MS"),
            ignore_https_errors=_flag(env, "PLAYWRIGHT_IGNORE_HTTPS_ERRORS"),
            click_post=ClickPostCredentials(
                email=env.get("CLICKPOST_EMAIL", "").strip(),
                password=env.get("CLICKPOST_PASSWORD", "").strip(),
            ),
            click_post_options=click_post_options,
            yamato=yamato,
        )

    @property
    def click_post_ready(self) -> bool:
        """Credentials are present, or an operator will log in by hand."""
        return self.click_post.is_complete or self.click_post_options.manual_login
