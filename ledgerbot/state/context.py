"""Short-lived conversation state per channel and tenant.

A context lives for ``ttl`` after its last update. An expired context is never
reused: the next access creates a fresh one with a new session id. A short
reply such as ``2`` or ``second`` is a continuation when the previous answer
left a list of more than one candidate in a disambiguation-eligible category.
"""

import asyncio
import logging
import re
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Callable

from ledgerbot.errors import InvalidSelectionError

logger = logging.getLogger(__name__)

DEFAULT_TTL = timedelta(minutes=10)

ELIGIBLE_CATEGORIES = frozenset({"ledger", "cached"})

CONTINUATION_PATTERNS = [
    re.compile(r"^(?:[1-9]|10)$"),
    re.compile(r"^(?:first|second|third|fourth|fifth)$", re.IGNORECASE),
    re.compile(r"^(?:show\s+me\s+)?more$", re.IGNORECASE),
    re.compile(r"^(?:tell\s+me\s+)?details$", re.IGNORECASE),
    re.compile(r"^yes$", re.IGNORECASE),
    re.compile(r"^ok$", re.IGNORECASE),
    re.compile(r"^continue$", re.IGNORECASE),
]

ORDINALS = {"first": 0, "second": 1, "third": 2, "fourth": 3, "fifth": 4}


@dataclass
class ConversationContext:
    """Conversation state for one (channel, tenant) pair."""

    session_id: str
    channel_id: str
    tenant_id: str
    created_at: datetime
    expires_at: datetime
    last_query_text: str = ""
    last_response_text: str = ""
    last_category: str = ""
    last_result_set: list[Any] | None = field(default=None)

    @property
    def awaits_selection(self) -> bool:
        """Whether the last answer left candidates to pick from."""
        return (
            isinstance(self.last_result_set, list)
            and len(self.last_result_set) > 1
            and self.last_category in ELIGIBLE_CATEGORIES
        )


@dataclass(frozen=True)
class Selection:
    """A candidate picked from the pending result set."""

    index: int
    item: Any


def is_continuation_phrase(text: str) -> bool:
    """Check if text is one of the short follow-up replies."""
    stripped = text.strip()
    return any(pattern.match(stripped) for pattern in CONTINUATION_PATTERNS)


def selection_index(text: str) -> int | None:
    """Map a reply to a 0-based index, or None for non-positional replies like ``more``."""
    stripped = text.strip().lower()
    if stripped.isdigit():
        return int(stripped) - 1
    return ORDINALS.get(stripped)


class ContextStore:
    """In-memory conversation contexts with TTL expiry and a periodic sweep."""

    def __init__(
        self,
        ttl: timedelta = DEFAULT_TTL,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.ttl = ttl
        self.clock = clock
        self._contexts: dict[tuple[str, str], ConversationContext] = {}
        self._sweeper: asyncio.Task | None = None

    def __len__(self) -> int:
        return len(self._contexts)

    def _new_context(self, channel_id: str, tenant_id: str) -> ConversationContext:
        now = self.clock()
        context = ConversationContext(
            session_id=f"session-{int(now.timestamp() * 1000)}-{uuid.uuid4().hex[:9]}",
            channel_id=channel_id,
            tenant_id=tenant_id,
            created_at=now,
            expires_at=now + self.ttl,
        )
        self._contexts[(channel_id, tenant_id)] = context
        logger.debug(f"Created conversation context {context.session_id}")
        return context

    def peek(self, channel_id: str, tenant_id: str) -> ConversationContext | None:
        """Get the live context without creating one."""
        context = self._contexts.get((channel_id, tenant_id))
        if context is None:
            return None
        if context.expires_at <= self.clock():
            del self._contexts[(channel_id, tenant_id)]
            return None
        return context

    def get(self, channel_id: str, tenant_id: str) -> ConversationContext:
        """Get the live context, creating a fresh one if absent or expired."""
        return self.peek(channel_id, tenant_id) or self._new_context(channel_id, tenant_id)

    def update(
        self,
        channel_id: str,
        tenant_id: str,
        query_text: str,
        response_text: str,
        category: str,
        result_set: list[Any] | None = None,
    ) -> ConversationContext:
        """Record a resolved exchange and push the expiry out by the TTL."""
        context = self.get(channel_id, tenant_id)
        context.last_query_text = query_text
        context.last_response_text = response_text
        context.last_category = category
        context.last_result_set = result_set
        context.expires_at = self.clock() + self.ttl
        return context

    def is_continuation(self, channel_id: str, tenant_id: str, text: str) -> bool:
        """Check if text answers the pending disambiguation list."""
        if not is_continuation_phrase(text):
            return False
        context = self.peek(channel_id, tenant_id)
        return context is not None and context.awaits_selection

    def select(self, channel_id: str, tenant_id: str, text: str) -> Selection | None:
        """Resolve a continuation reply against the pending list.

        Args:
            channel_id: Channel the reply came from
            tenant_id: Tenant the reply belongs to
            text: The reply, e.g. ``2`` or ``second``

        Returns:
            The picked candidate, or None for replies that do not name a position

        Raises:
            InvalidSelectionError: If the position is outside the pending list
        """
        context = self.get(channel_id, tenant_id)
        candidates = context.last_result_set or []
        index = selection_index(text)
        if index is None:
            return None
        if not 0 <= index < len(candidates):
            raise InvalidSelectionError(index + 1, len(candidates))
        return Selection(index=index, item=candidates[index])

    def sweep(self) -> int:
        """Delete every expired context.

        Returns:
            Number of contexts removed
        """
        now = self.clock()
        expired = [key for key, context in self._contexts.items() if context.expires_at <= now]
        for key in expired:
            del self._contexts[key]
        if expired:
            logger.debug(f"Swept {len(expired)} expired conversation contexts")
        return len(expired)

    def start_sweeper(self, interval: timedelta, extra: Callable[[], Any] | None = None) -> asyncio.Task:
        """Start a background task that sweeps every ``interval``.

        Args:
            interval: Time between sweeps
            extra: Optional callable run after each sweep, e.g. a cache sweep
        """
        if self._sweeper is None or self._sweeper.done():
            self._sweeper = asyncio.create_task(self._sweep_forever(interval, extra))
        return self._sweeper

    async def stop_sweeper(self) -> None:
        """Cancel the background sweep task."""
        if self._sweeper is None:
            return
        self._sweeper.cancel()
        try:
            await self._sweeper
        except asyncio.CancelledError:
            pass
        self._sweeper = None

    async def _sweep_forever(self, interval: timedelta, extra: Callable[[], Any] | None) -> None:
        while True:
            await asyncio.sleep(interval.total_seconds())
            try:
                self.sweep()
                if extra is not None:
                    extra()
            except Exception as e:
                logger.error(f"Context sweep failed: {e}", exc_info=True)
