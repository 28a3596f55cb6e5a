"""Two-tier page fetcher: static HTTP first, headless Chromium as fallback.

Both tiers implement the :class:`Fetcher` interface and raise
:class:`~uniscope.errors.TransientFetchError` or
:class:`~uniscope.errors.PermanentFetchError` for a failed attempt.
:class:`FetchEngine` owns the single escalation policy:

    static (N attempts, 2 s * attempt backoff)
        → browser (N attempts, 3 s * attempt backoff)
        → FetchFailure

A permanent error ends the whole fetch immediately.  The engine never raises;
callers receive either a :class:`RawPage` / :class:`FetchResult` or a
:class:`FetchFailure`.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from typing import AsyncIterator, Awaitable, Callable, Optional, Sequence, Union

import httpx
from dateutil import parser as date_parser
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import async_playwright

from uniscope.config import settings
from uniscope.errors import PermanentFetchError, TransientFetchError
from uniscope.scraper.html import (
    collapse_whitespace,
    element_text,
    hostname,
    parse_html,
    resolve_url,
    strip_tags,
)
from uniscope.scraper.models import FetchFailure, FetchResult, PageMetadata, RawPage

Sleep = Callable[[float], Awaitable[None]]

# Resource types the browser never downloads; only the DOM matters.
_BLOCKED_RESOURCES = frozenset({"image", "stylesheet", "font", "media"})

_BROWSER_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
]

_CONTENT_SELECTORS = ("article", "main", ".content", "#content", "body")
_MIN_CONTENT_CHARS = 100


def _default_headers() -> dict[str, str]:
    return {
        "User-Agent": settings.user_agent,
        "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
        "Accept-Language": settings.accept_language,
    }


def _check_status(url: str, status: int) -> None:
    if status >= 500:
        raise TransientFetchError(url, f"HTTP {status}")
    if status >= 400:
        raise PermanentFetchError(url, f"HTTP {status}")


# ---------------------------------------------------------------------------
# Fetcher interface
# ---------------------------------------------------------------------------

class Fetcher(ABC):
    """One way of turning a URL into HTML."""

    #: Seconds multiplied by the attempt index between retries.
    backoff: float = 0.0

    @property
    @abstractmethod
    def name(self) -> str:
        """Short tier name used in status messages."""

    @abstractmethod
    async def fetch(self, url: str) -> RawPage:
        """Perform a single attempt.  Raises a ``FetchError`` subclass on failure."""


class StaticFetcher(Fetcher):
    """Plain ``httpx`` GET with a browser-like User-Agent."""

    def __init__(
        self,
        timeout: Optional[float] = None,
        max_redirects: Optional[int] = None,
        backoff: Optional[float] = None,
    ) -> None:
        self.timeout = settings.request_timeout if timeout is None else timeout
        self.max_redirects = settings.max_redirects if max_redirects is None else max_redirects
        self.backoff = settings.static_backoff if backoff is None else backoff

    @property
    def name(self) -> str:
        return "static"

    async def fetch(self, url: str) -> RawPage:
        try:
            async with httpx.AsyncClient(
                headers=_default_headers(),
                timeout=self.timeout,
                follow_redirects=True,
                max_redirects=self.max_redirects,
            ) as client:
                response = await client.get(url)
        except httpx.TooManyRedirects as exc:
            raise PermanentFetchError(url, "too many redirects") from exc
        except httpx.InvalidURL as exc:
            raise PermanentFetchError(url, f"invalid URL: {exc}") from exc
        except httpx.HTTPError as exc:
            raise TransientFetchError(url, f"{type(exc).__name__}: {exc}") from exc

        _check_status(url, response.status_code)

        content_type = response.headers.get("content-type", "").lower()
        if content_type and "html" not in content_type and "xml" not in content_type:
            raise PermanentFetchError(url, f"unsupported content type {content_type!r}")

        return RawPage(url=str(response.url), html=response.text, status_code=response.status_code)


# ---------------------------------------------------------------------------
# Headless browser tier
# ---------------------------------------------------------------------------

async def _block_heavy_resources(route) -> None:  # type: ignore[no-untyped-def]
    if route.request.resource_type in _BLOCKED_RESOURCES:
        await route.abort()
    else:
        await route.continue_()


@asynccontextmanager
async def browser_page(
    user_agent: Optional[str] = None,
    timeout: Optional[float] = None,
) -> AsyncIterator:
    """Launch a fresh headless Chromium and yield one page.

    The browser is closed on every exit path, exceptions included.  Nothing
    is shared between calls.
    """
    timeout_ms = int((settings.browser_timeout if timeout is None else timeout) * 1000)
    async with async_playwright() as pw:
        browser = await pw.chromium.launch(headless=True, args=_BROWSER_ARGS, timeout=timeout_ms)
        try:
            context = await browser.new_context(user_agent=user_agent or settings.user_agent)
            page = await context.new_page()
            await page.route("**/*", _block_heavy_resources)
            yield page
        finally:
            await browser.close()


class BrowserFetcher(Fetcher):
    """Render the page in headless Chromium and return the resulting DOM."""

    def __init__(
        self,
        timeout: Optional[float] = None,
        settle_delay: Optional[float] = None,
        backoff: Optional[float] = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.timeout = settings.browser_timeout if timeout is None else timeout
        self.settle_delay = settings.render_settle_delay if settle_delay is None else settle_delay
        self.backoff = settings.browser_backoff if backoff is None else backoff
        self._sleep = sleep

    @property
    def name(self) -> str:
        return "browser"

    async def fetch(self, url: str) -> RawPage:
        try:
            async with browser_page(timeout=self.timeout) as page:
                response = await page.goto(
                    url,
                    wait_until="domcontentloaded",
                    timeout=int(self.timeout * 1000),
                )
                # Give client-side scripts a moment to fill the DOM.
                await self._sleep(self.settle_delay)
                html = await page.content()
        except PlaywrightError as exc:
            raise TransientFetchError(url, f"browser: {exc}") from exc

        status = response.status if response is not None else 200
        _check_status(url, status)
        return RawPage(url=url, html=html, status_code=status, via="browser")


# ---------------------------------------------------------------------------
# Page summary (title / main content / metadata)
# ---------------------------------------------------------------------------

def _meta_content(soup, **attrs: str) -> str:  # type: ignore[no-untyped-def]
    tag = soup.find("meta", attrs=attrs)
    if tag is None:
        return ""
    return (tag.get("content") or "").strip()


def _parse_date(value: str):  # type: ignore[no-untyped-def]
    if not value:
        return None
    try:
        return date_parser.parse(value)
    except (ValueError, OverflowError):
        return None


def summarise_page(raw: RawPage) -> FetchResult:
    """Pick title, main content block and metadata out of *raw*'s HTML.

    Content candidates are tried in order (``article``, ``main``,
    ``.content``, ``#content``, ``body``); the first whose text exceeds 100
    characters wins, otherwise all ``<p>`` texts are joined.
    """
    soup = parse_html(raw.html)
    strip_tags(soup, ("script", "style", "noscript"))

    title = ""
    if soup.title is not None:
        title = collapse_whitespace(soup.title.get_text())
    if not title:
        title = _meta_content(soup, property="og:title")
    if not title:
        h1 = soup.find("h1")
        title = element_text(h1) if h1 is not None else ""

    content = ""
    for selector in _CONTENT_SELECTORS:
        element = soup.select_one(selector)
        if element is None:
            continue
        text = element_text(element)
        if len(text) > _MIN_CONTENT_CHARS:
            content = text
            break
    if not content:
        content = " ".join(
            t for t in (element_text(p) for p in soup.find_all("p")) if t
        )

    image_url = _meta_content(soup, property="og:image")
    if not image_url:
        img = soup.find("img", src=True)
        if img is not None:
            image_url = resolve_url(img["src"], raw.url) or ""

    publish_raw = _meta_content(soup, property="article:published_time")
    if not publish_raw:
        time_tag = soup.find("time", attrs={"datetime": True})
        if time_tag is not None:
            publish_raw = time_tag["datetime"]

    metadata = PageMetadata(
        description=(
            _meta_content(soup, name="description")
            or _meta_content(soup, property="og:description")
        ),
        image_url=image_url,
        publish_date=_parse_date(publish_raw),
    )

    return FetchResult(
        url=raw.url,
        title=title,
        content=content,
        source=hostname(raw.url),
        metadata=metadata,
        via=raw.via,
    )


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------

class FetchEngine:
    """Run fetch tiers in order with retry and linear backoff."""

    def __init__(
        self,
        tiers: Optional[Sequence[Fetcher]] = None,
        attempts: Optional[int] = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._sleep = sleep
        self.attempts = max(1, settings.fetch_attempts if attempts is None else attempts)
        if tiers is None:
            tiers = [StaticFetcher(), BrowserFetcher(sleep=sleep)]
        self.tiers = list(tiers)

    async def _attempt(self, fetcher: Fetcher, url: str) -> Union[RawPage, FetchFailure]:
        failure = FetchFailure(url=url, reason="no attempt made")
        for attempt in range(self.attempts):
            if attempt > 0:
                delay = fetcher.backoff * attempt
                print(
                    f"[fetch] {fetcher.name} retry {attempt}/{self.attempts - 1} "
                    f"for {url} in {delay:.0f}s …"
                )
                await self._sleep(delay)
            try:
                return await fetcher.fetch(url)
            except PermanentFetchError as exc:
                print(f"[fetch] ✗ {fetcher.name} {url}: {exc.reason} (not retried)")
                return FetchFailure(url=url, reason=exc.reason, permanent=True)
            except TransientFetchError as exc:
                print(f"[fetch] {fetcher.name} attempt {attempt + 1} failed for {url}: {exc.reason}")
                failure = FetchFailure(url=url, reason=exc.reason)
            except Exception as exc:
                print(f"[fetch] {fetcher.name} attempt {attempt + 1} crashed for {url}: {exc!r}")
                failure = FetchFailure(url=url, reason=repr(exc))
        return failure

    async def fetch_raw(self, url: str) -> Union[RawPage, FetchFailure]:
        """Return the HTML of *url* from the first tier that succeeds."""
        failure = FetchFailure(url=url, reason="no fetch tiers configured")
        for index, tier in enumerate(self.tiers):
            outcome = await self._attempt(tier, url)
            if isinstance(outcome, RawPage):
                return outcome
            failure = outcome
            if outcome.permanent:
                break
            if index < len(self.tiers) - 1:
                print(f"[fetch] {tier.name} exhausted for {url}, escalating to {self.tiers[index + 1].name} …")
        print(f"[fetch] ✗ giving up on {url}: {failure.reason}")
        return failure

    async def fetch(self, url: str) -> Union[FetchResult, FetchFailure]:
        """Fetch *url* and summarise it into title, content and metadata."""
        raw = await self.fetch_raw(url)
        if isinstance(raw, FetchFailure):
            return raw
        try:
            return summarise_page(raw)
        except Exception as exc:
            print(f"[fetch] ✗ could not parse {url}: {exc!r}")
            return FetchFailure(url=url, reason=f"parse error: {exc!r}")
