"""
Live news ticker.

Pulls real UK politics/business RSS feeds and keeps the budget-relevant
items as LIVE headlines. Independent of the simulation: it only ever adds
to the outbound headline stream.
"""

import asyncio
import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Callable, List, Optional

import httpx

from .config import NewsSettings
from .narrative import EventKind, NarrativeEvent

logger = logging.getLogger(__name__)

_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


@dataclass(frozen=True)
class NewsItem:
    title: str
    summary: str
    published: datetime

    def to_event(self) -> NarrativeEvent:
        return NarrativeEvent(EventKind.LIVE, f"LIVE: {self.title}")


def _parse_date(raw: Optional[str]) -> datetime:
    if not raw:
        return _OLDEST
    try:
        published = parsedate_to_datetime(raw)
    except (TypeError, ValueError):
        return _OLDEST
    if published.tzinfo is None:
        published = published.replace(tzinfo=timezone.utc)
    return published


def parse_feed(raw_bytes: bytes) -> List[NewsItem]:
    """RSS 2.0 ``<item>`` elements as NewsItems. Raises ET.ParseError on bad XML."""
    root = ET.fromstring(raw_bytes)
    items = []
    for node in root.iter("item"):
        title = (node.findtext("title") or "").strip()
        if not title:
            continue
        items.append(NewsItem(
            title=title,
            summary=(node.findtext("description") or "").strip(),
            published=_parse_date(node.findtext("pubDate")),
        ))
    return items


class NewsIngester:
    """Fetches the configured feeds and keeps the freshest relevant items."""

    def __init__(self, settings: NewsSettings = None, transport: httpx.AsyncBaseTransport = None):
        self.settings = settings or NewsSettings()
        self._transport = transport
        self._items: List[NewsItem] = []

    def is_relevant(self, item: NewsItem) -> bool:
        text = f"{item.title} {item.summary}".lower()
        return any(keyword in text for keyword in self.settings.keywords)

    async def _fetch_one(self, client: httpx.AsyncClient, url: str) -> List[NewsItem]:
        try:
            response = await client.get(url)
            response.raise_for_status()
            return parse_feed(response.content)
        except (httpx.HTTPError, ET.ParseError) as exc:
            logger.warning("Error fetching feed %s: %s", url, exc)
            return []

    async def refresh(self) -> List[NarrativeEvent]:
        """Fetch every feed once and return the current top items as LIVE events."""
        s = self.settings
        async with httpx.AsyncClient(
            timeout=s.request_timeout,
            headers={"User-Agent": s.user_agent},
            follow_redirects=True,
            transport=self._transport,
        ) as client:
            batches = await asyncio.gather(*(self._fetch_one(client, url) for url in s.feeds))

        relevant = [item for batch in batches for item in batch if self.is_relevant(item)]
        relevant.sort(key=lambda item: item.published, reverse=True)
        self._items = relevant[: s.max_items]
        logger.info("Fetched %d relevant live news items", len(self._items))
        return self.latest()

    def latest(self, n: int = None) -> List[NarrativeEvent]:
        items = self._items if n is None else self._items[:n]
        return [item.to_event() for item in items]

    async def run(self, publish: Callable[[List[NarrativeEvent]], None], stop: asyncio.Event, first: int = 5):
        """Refresh on the configured interval until ``stop`` is set."""
        while not stop.is_set():
            events = await self.refresh()
            if events:
                publish(events[:first])
            try:
                await asyncio.wait_for(stop.wait(), self.settings.poll_interval_seconds)
            except asyncio.TimeoutError:
                pass
