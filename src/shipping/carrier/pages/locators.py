"""Selector fallback chains for carrier pages.

Carrier portals are uncontracted UIs whose markup drifts over time. Each
field or control is therefore described by an ordered list of candidates,
oldest/most specific first, and resolved by trying them in sequence with a
short timeout per attempt. A candidate is either a Playwright selector
string or a callable building a locator from the page (for role/label
based lookups).
"""

import asyncio
from collections.abc import Awaitable, Callable, Sequence

import structlog
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Locator, Page

logger = structlog.get_logger(__name__)

Candidate = str | Callable[[Page], Locator]

# Per-candidate wait while walking a chain
CANDIDATE_TIMEOUT_MS = 3_000
# Per-candidate wait inside polling loops, where the loop owns the deadline
CHECK_TIMEOUT_MS = 250


def by_role(role: str, name: str) -> Callable[[Page], Locator]:
    """Candidate matching an accessible role and name."""
    return lambda page: page.get_by_role(role, name=name)


def describe(candidate: Candidate) -> str:
    return candidate if isinstance(candidate, str) else getattr(candidate, "__name__", repr(candidate))


class LocatorChain:
    """An ordered list of lookup strategies for one element."""

    def __init__(self, label: str, candidates: Sequence[Candidate], timeout_ms: int = CANDIDATE_TIMEOUT_MS):
        if not candidates:
            raise ValueError(f"{label}: at least one candidate is required")
        self.label = label
        self.candidates = tuple(candidates)
        self.timeout_ms = timeout_ms

    def _resolve(self, page: Page, candidate: Candidate) -> Locator:
        locator = page.locator(candidate) if isinstance(candidate, str) else candidate(page)
        return locator.first

    async def find(self, page: Page, state: str = "visible", timeout_ms: int | None = None) -> Locator | None:
        """Return the first candidate reaching ``state``, or None."""
        timeout = self.timeout_ms if timeout_ms is None else timeout_ms
        for candidate in self.candidates:
            locator = self._resolve(page, candidate)
            try:
                await locator.wait_for(state=state, timeout=timeout)
            except PlaywrightError:
                continue
            logger.debug("Locator resolved", element=self.label, candidate=describe(candidate))
            return locator
        return None

    async def text(self, page: Page, timeout_ms: int | None = None) -> str | None:
        """Return the first non-blank text content among the candidates."""
        return await self._first_value(page, lambda locator: locator.text_content(), timeout_ms)

    async def attribute(self, page: Page, name: str, timeout_ms: int | None = None) -> str | None:
        return await self._first_value(page, lambda locator: locator.get_attribute(name), timeout_ms)

    async def input_value(self, page: Page, timeout_ms: int | None = None) -> str | None:
        return await self._first_value(page, lambda locator: locator.input_value(), timeout_ms, state="attached")

    async def _first_value(
        self,
        page: Page,
        read: Callable[[Locator], Awaitable[str | None]],
        timeout_ms: int | None,
        state: str = "visible",
    ) -> str | None:
        timeout = self.timeout_ms if timeout_ms is None else timeout_ms
        for candidate in self.candidates:
            locator = self._resolve(page, candidate)
            try:
                await locator.wait_for(state=state, timeout=timeout)
                value = await read(locator)
            except PlaywrightError:
                continue
            if value and value.strip():
                return value.strip()
        return None


async def activate(locator: Locator, timeout_ms: int = CANDIDATE_TIMEOUT_MS) -> bool:
    """Click ``locator``, falling back to a DOM-level click.

    Returns False when neither strategy worked.
    """
    try:
        await locator.click(timeout=timeout_ms)
        return True
    except PlaywrightError as exc:
        logger.debug("Click failed, falling back to script click", error=str(exc))
    try:
        await locator.evaluate("el => el.click()")
        return True
    except PlaywrightError as exc:
        logger.debug("Script click failed", error=str(exc))
        return False


async def poll(
    check: Callable[[], Awaitable[bool]],
    timeout_s: float,
    interval_s: float,
) -> bool:
    """Run ``check`` until it returns True or ``timeout_s`` elapses."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout_s
    while True:
        if await check():
            return True
        if loop.time() >= deadline:
            return False
        await asyncio.sleep(interval_s)
