"""Publish/subscribe fan-out of entry and totals snapshots."""

import asyncio
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from dataclasses import dataclass, field
from datetime import date
from itertools import count

from study_tracker.domain.entries import StudyEntry
from study_tracker.domain.stats import ProgressTotals

_logger = logging.getLogger(__name__)

EntriesHandler = Callable[[list[StudyEntry]], None]
TotalsHandler = Callable[[ProgressTotals | None], None]
ErrorHandler = Callable[[Exception], None]


@dataclass(frozen=True)
class Subscription:
    """Handle returned on subscribe; pass it back to unsubscribe."""

    id: int
    topic: str


@dataclass(frozen=True)
class StreamError:
    """Stream item carrying a failure reported on the error channel."""

    error: Exception


@dataclass
class _EntrySubscriber:
    handler: EntriesHandler
    date_filter: date | None
    on_error: ErrorHandler | None
    delivered: bool = False


@dataclass
class _TotalsSubscriber:
    handler: TotalsHandler
    on_error: ErrorHandler | None
    delivered: bool = False


@dataclass
class ChangeNotifier:
    """Delivers the current entry set and totals to registered observers.

    Each subscriber gets an initial snapshot on subscribe, then one snapshot per
    published change, in publish order.
    """

    load_entries: Callable[[], Awaitable[list[StudyEntry]]]
    load_totals: Callable[[], Awaitable[ProgressTotals | None]]
    _entry_subscribers: dict[int, _EntrySubscriber] = field(default_factory=dict)
    _totals_subscribers: dict[int, _TotalsSubscriber] = field(default_factory=dict)
    _ids: count = field(default_factory=lambda: count(1))

    async def subscribe_entries(
        self,
        handler: EntriesHandler,
        date_filter: date | None = None,
        on_error: ErrorHandler | None = None,
    ) -> Subscription:
        """Register an entry observer, optionally scoped to one date."""
        subscriber = _EntrySubscriber(handler, date_filter, on_error)
        subscription = Subscription(id=next(self._ids), topic="entries")
        self._entry_subscribers[subscription.id] = subscriber
        try:
            entries = await self.load_entries()
        except Exception as exc:
            _logger.exception("Failed to load initial entry snapshot")
            if not subscriber.delivered:
                self._deliver_entry_error(subscriber, exc)
        else:
            # A publish during the load already delivered newer state.
            if not subscriber.delivered:
                self._deliver_entries(subscriber, entries)
        return subscription

    async def subscribe_totals(
        self,
        handler: TotalsHandler,
        on_error: ErrorHandler | None = None,
    ) -> Subscription:
        """Register a totals observer."""
        subscriber = _TotalsSubscriber(handler, on_error)
        subscription = Subscription(id=next(self._ids), topic="totals")
        self._totals_subscribers[subscription.id] = subscriber
        try:
            totals = await self.load_totals()
        except Exception as exc:
            _logger.exception("Failed to load initial totals snapshot")
            if not subscriber.delivered:
                self._deliver_totals_error(subscriber, exc)
        else:
            if not subscriber.delivered:
                self._deliver_totals(subscriber, totals)
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        """Stop deliveries for a subscription; unknown handles are ignored."""
        self._entry_subscribers.pop(subscription.id, None)
        self._totals_subscribers.pop(subscription.id, None)

    @property
    def subscriber_count(self) -> int:
        return len(self._entry_subscribers) + len(self._totals_subscribers)

    def publish_entries(self, entries: list[StudyEntry]) -> None:
        """Push a committed entry snapshot to every entry observer."""
        for subscriber in list(self._entry_subscribers.values()):
            self._deliver_entries(subscriber, entries)

    def publish_totals(self, totals: ProgressTotals | None) -> None:
        """Push refreshed totals to every totals observer."""
        for subscriber in list(self._totals_subscribers.values()):
            self._deliver_totals(subscriber, totals)

    def publish_error(self, exc: Exception) -> None:
        """Report a store failure, then fall back to empty snapshots."""
        for subscriber in list(self._entry_subscribers.values()):
            self._deliver_entry_error(subscriber, exc)
        for subscriber in list(self._totals_subscribers.values()):
            self._deliver_totals_error(subscriber, exc)

    async def entry_stream(
        self, date_filter: date | None = None
    ) -> AsyncIterator[list[StudyEntry] | StreamError]:
        """Yield entry snapshots until the consumer stops iterating.

        A store failure arrives as a ``StreamError`` followed by an empty snapshot.
        """
        queue: asyncio.Queue[list[StudyEntry] | StreamError] = asyncio.Queue()
        subscription = await self.subscribe_entries(
            queue.put_nowait,
            date_filter,
            on_error=lambda exc: queue.put_nowait(StreamError(exc)),
        )
        try:
            while True:
                yield await queue.get()
        finally:
            self.unsubscribe(subscription)

    async def totals_stream(self) -> AsyncIterator[ProgressTotals | None | StreamError]:
        """Yield totals snapshots, with failures reported like ``entry_stream``."""
        queue: asyncio.Queue[ProgressTotals | None | StreamError] = asyncio.Queue()
        subscription = await self.subscribe_totals(
            queue.put_nowait,
            on_error=lambda exc: queue.put_nowait(StreamError(exc)),
        )
        try:
            while True:
                yield await queue.get()
        finally:
            self.unsubscribe(subscription)

    def _deliver_entries(
        self, subscriber: _EntrySubscriber, entries: list[StudyEntry]
    ) -> None:
        if subscriber.date_filter is not None:
            entries = [
                entry for entry in entries if entry.date == subscriber.date_filter
            ]
        subscriber.delivered = True
        try:
            subscriber.handler(list(entries))
        except Exception:
            _logger.exception("Entry subscriber failed to handle snapshot")

    def _deliver_totals(
        self, subscriber: _TotalsSubscriber, totals: ProgressTotals | None
    ) -> None:
        subscriber.delivered = True
        try:
            subscriber.handler(totals)
        except Exception:
            _logger.exception("Totals subscriber failed to handle snapshot")

    def _deliver_entry_error(
        self, subscriber: _EntrySubscriber, exc: Exception
    ) -> None:
        _notify_error(subscriber.on_error, exc)
        self._deliver_entries(subscriber, [])

    def _deliver_totals_error(
        self, subscriber: _TotalsSubscriber, exc: Exception
    ) -> None:
        _notify_error(subscriber.on_error, exc)
        self._deliver_totals(subscriber, None)


def _notify_error(on_error: ErrorHandler | None, exc: Exception) -> None:
    if on_error is None:
        return
    try:
        on_error(exc)
    except Exception:
        _logger.exception("Subscriber error handler failed")
