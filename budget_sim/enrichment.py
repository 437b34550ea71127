"""
AI-written headlines.

Optional colour on top of the template headlines. Calls the Gemini REST API
through httpx, never touches the budget state, and returns None on any
failure so the caller simply keeps the template headlines.
"""

import asyncio
import logging
import threading
import time
from typing import Callable, Dict, List, Mapping, Optional

import httpx

from .config import EnrichmentSettings
from .engine import BudgetAction
from .narrative import EventKind, NarrativeEvent
from .state import BudgetState

logger = logging.getLogger(__name__)

AI_PREFIX = "\N{ROBOT FACE} "

BATCH_PROMPT = """You are a UK tabloid headline writer. Generate {count} dramatic, punchy headlines about the UK government budget.

Current fiscal context:
- Deficit: £{deficit:.0f}bn
- GDP: £{gdp:.0f}bn
- Inflation: {inflation:.1f}%
- Public Mood: {public_mood:.0f}%
- Political Capital: {political_capital:.0f}%

Generate headlines that:
1. Are tabloid-style dramatic (like The Sun, Daily Mail, Metro)
2. Reference real UK political themes (NHS, taxes, cost of living, immigration, housing)
3. Mix positive and negative angles
4. Are 8-15 words each
5. Include sensationalist language

Return ONLY the {count} headlines, one per line, no numbering or bullets."""

CONTEXTUAL_PROMPT = """Generate ONE dramatic UK tabloid headline about this budget action:

Action: {action}
Amount: £{amount:.0f}bn
Current deficit: £{deficit:.0f}bn
Public mood: {public_mood:.0f}%

The headline should be:
- Tabloid dramatic style (The Sun, Daily Mail)
- 8-15 words
- Sensationalist but believable
- Reference real UK issues

Return ONLY the headline, nothing else."""


def action_descriptor(action: BudgetAction, diff: float) -> str:
    """``cut_health``, ``boost_income_tax`` and so on."""
    verb = "cut" if diff < 0 else "boost"
    return f"{verb}_{action.id.lower().replace(' ', '_')}"


def fiscal_context(state: BudgetState) -> Dict[str, float]:
    return {
        "deficit": state.deficit,
        "gdp": state.gdp,
        "inflation": state.inflation,
        "public_mood": state.public_mood,
        "political_capital": state.political_capital,
    }


class HeadlineWriter:
    """Rate-limited, cached client for AI headlines."""

    def __init__(
        self,
        settings: EnrichmentSettings = None,
        transport: httpx.AsyncBaseTransport = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.settings = settings or EnrichmentSettings()
        self._transport = transport
        self._clock = clock
        self._cache: List[str] = []
        self._last_generated: Optional[float] = None

    def _cooling_down(self, window: float) -> bool:
        return self._last_generated is not None and self._clock() - self._last_generated < window

    def _acceptable(self, text: str) -> bool:
        s = self.settings
        return s.min_headline_length < len(text) < s.max_headline_length

    async def _generate(self, prompt: str) -> str:
        s = self.settings
        url = f"{s.base_url}/models/{s.model}:generateContent"
        payload = {"contents": [{"parts": [{"text": prompt}]}]}
        async with httpx.AsyncClient(timeout=s.request_timeout, transport=self._transport) as client:
            response = await client.post(url, params={"key": s.api_key}, json=payload)
        response.raise_for_status()
        data = response.json()
        return data["candidates"][0]["content"]["parts"][0]["text"]

    async def batch_headlines(self, context: Mapping[str, float]) -> Optional[List[str]]:
        """One headline about the budget as a whole.

        A fresh batch is generated at most once per cache window; in between,
        cached headlines are handed out in rotation.
        """
        s = self.settings
        if self._cache and self._cooling_down(s.batch_cache_seconds):
            headline = self._cache.pop(0)
            self._cache.append(headline)
            return [headline]
        if not s.enabled:
            return None

        prompt = BATCH_PROMPT.format(
            count=s.batch_size,
            deficit=context.get("deficit", 100),
            gdp=context.get("gdp", 2800),
            inflation=context.get("inflation", 2.5),
            public_mood=context.get("public_mood", 50),
            political_capital=context.get("political_capital", 100),
        )
        try:
            text = await self._generate(prompt)
        except (httpx.HTTPError, KeyError, IndexError, ValueError) as exc:
            logger.warning("AI headline batch failed: %s", exc)
            return None

        headlines = [h.strip() for h in text.split("\n")]
        headlines = [h for h in headlines if self._acceptable(h)]
        if not headlines:
            return None
        self._cache = headlines
        self._last_generated = self._clock()
        logger.info("Generated %d AI headlines", len(headlines))
        return [headlines[0]]

    async def contextual_headline(
        self, action: str, amount: float, context: Mapping[str, float]
    ) -> Optional[str]:
        """One headline about a specific action, or None."""
        s = self.settings
        if not s.enabled or self._cooling_down(s.contextual_cooldown_seconds):
            return None

        prompt = CONTEXTUAL_PROMPT.format(
            action=action,
            amount=abs(amount),
            deficit=context.get("deficit", 100),
            public_mood=context.get("public_mood", 50),
        )
        try:
            headline = (await self._generate(prompt)).strip()
        except (httpx.HTTPError, KeyError, IndexError, ValueError) as exc:
            logger.warning("AI contextual headline failed: %s", exc)
            return None

        if not self._acceptable(headline):
            return None
        self._last_generated = self._clock()
        return headline


async def enrich_events(
    writer: HeadlineWriter,
    action: BudgetAction,
    diff: float,
    state: BudgetState,
    events: List[NarrativeEvent],
    timeout: float = None,
) -> List[NarrativeEvent]:
    """Template headlines, with an AI headline in front when one arrives in time.

    Runs after the tick has finished; the returned list is a new list and
    ``events`` is left as it was.
    """
    if not events or abs(diff) <= writer.settings.min_enrich_diff:
        return list(events)

    timeout = timeout if timeout is not None else writer.settings.request_timeout
    try:
        headline = await asyncio.wait_for(
            writer.contextual_headline(action_descriptor(action, diff), diff, fiscal_context(state)),
            timeout,
        )
    except asyncio.TimeoutError:
        logger.warning("AI headline for %s timed out after %.1fs", action.id, timeout)
        headline = None

    if headline is None:
        return list(events)
    return [NarrativeEvent(EventKind.AI, AI_PREFIX + headline)] + list(events)


def enrich_in_background(
    writer: HeadlineWriter,
    action: BudgetAction,
    diff: float,
    state: BudgetState,
    events: List[NarrativeEvent],
    publish: Callable[[List[NarrativeEvent]], None],
    timeout: float = None,
) -> threading.Thread:
    """Fetch the AI headline on a worker thread and publish only that event.

    The template headlines are expected to be published already; nothing is
    published if no AI headline arrives.
    """
    def work():
        enriched = asyncio.run(enrich_events(writer, action, diff, state, events, timeout))
        if len(enriched) > len(events):
            publish(enriched[:1])

    thread = threading.Thread(target=work, name="headline-enrichment", daemon=True)
    thread.start()
    return thread
