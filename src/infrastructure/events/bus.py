# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""In-memory event bus for Scholaris.

Services publish "entity changed" events after their writes commit; the
real-time relay and other listeners subscribe by exact type or wildcard
pattern. Dispatch is fire-and-forget from the publisher's point of view:
a failing handler never fails the operation that emitted the event.

Example:
    bus = EventBus()

    async def on_assignment_created(event):
        ...

    bus.subscribe(EventTypes.Assignment.CREATED, on_assignment_created)
    bus.subscribe("submission.*", on_any_submission_event)

    await bus.publish(
        EventTypes.Assignment.CREATED,
        {"assignment_id": "...", "student_ids": [...]},
        tenant_id=tenant_id,
    )
"""

import asyncio
import fnmatch
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Optional
from uuid import uuid4

logger = logging.getLogger(__name__)

EventHandler = Callable[["EventData"], Awaitable[None]]


@dataclass
class EventData:
    """Container for event data with metadata.

    Attributes:
        event_type: The event type string.
        payload: The event payload data.
        event_id: Unique event identifier.
        timestamp: When the event was published.
        tenant_id: Tenant the event belongs to.
    """

    event_type: str
    payload: dict[str, Any]
    event_id: str = field(default_factory=lambda: str(uuid4()))
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    tenant_id: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "event_id": self.event_id,
            "event_type": self.event_type,
            "payload": self.payload,
            "timestamp": self.timestamp.isoformat(),
            "tenant_id": self.tenant_id,
        }


def _is_pattern(event_type: str) -> bool:
    return "*" in event_type or "?" in event_type


class EventBus:
    """In-memory async event bus with wildcard subscriptions.

    Designed for single-process async use; one instance is created per
    application in the lifespan and shared through app.state.
    """

    def __init__(self) -> None:
        self._handlers: dict[str, list[EventHandler]] = {}
        self._pattern_handlers: dict[str, list[EventHandler]] = {}
        self._event_count = 0

    def subscribe(self, event_type: str, handler: EventHandler) -> None:
        """Subscribe a handler to an event type or wildcard pattern.

        Args:
            event_type: Exact type such as "exam.created" or a pattern
                such as "submission.*".
            handler: Async callable receiving the EventData.
        """
        registry = self._pattern_handlers if _is_pattern(event_type) else self._handlers
        registry.setdefault(event_type, []).append(handler)
        logger.debug("Subscribed handler to: %s", event_type)

    def unsubscribe(self, event_type: str, handler: EventHandler) -> bool:
        """Remove a handler.

        Returns:
            True if the handler was found and removed, False otherwise.
        """
        registry = self._pattern_handlers if _is_pattern(event_type) else self._handlers
        handlers = registry.get(event_type)
        if not handlers or handler not in handlers:
            return False
        handlers.remove(handler)
        if not handlers:
            del registry[event_type]
        return True

    def _matching_handlers(self, event_type: str) -> list[EventHandler]:
        matched = list(self._handlers.get(event_type, []))
        for pattern, handlers in self._pattern_handlers.items():
            if fnmatch.fnmatch(event_type, pattern):
                matched.extend(handlers)
        return matched

    async def publish(
        self,
        event_type: str,
        payload: dict[str, Any],
        tenant_id: Optional[str] = None,
    ) -> EventData:
        """Publish an event to all matching subscribers.

        Handlers run concurrently; an error in one handler is logged and
        does not stop the others.

        Args:
            event_type: The event type string.
            payload: Event data dictionary.
            tenant_id: Tenant the event belongs to.

        Returns:
            EventData object with event metadata.
        """
        event = EventData(event_type=event_type, payload=payload, tenant_id=tenant_id)
        self._event_count += 1

        handlers = self._matching_handlers(event_type)
        if not handlers:
            logger.debug("No handlers for event: %s (tenant: %s)", event_type, tenant_id)
            return event

        async def safe_call(handler: EventHandler) -> None:
            try:
                await handler(event)
            except Exception as e:
                logger.error(
                    "Handler error for event %s: %s",
                    event_type,
                    str(e),
                    exc_info=True,
                )

        await asyncio.gather(*[safe_call(handler) for handler in handlers])
        return event

    def clear(self) -> None:
        """Remove all subscriptions."""
        self._handlers.clear()
        self._pattern_handlers.clear()

    def get_stats(self) -> dict[str, Any]:
        """Subscription and publish counters."""
        return {
            "exact_subscriptions": len(self._handlers),
            "pattern_subscriptions": len(self._pattern_handlers),
            "total_handlers": sum(len(h) for h in self._handlers.values())
            + sum(len(h) for h in self._pattern_handlers.values()),
            "events_published": self._event_count,
        }


async def publish_safely(
    bus: Optional[EventBus],
    event_type: str,
    payload: dict[str, Any],
    tenant_id: Optional[str] = None,
) -> Optional[EventData]:
    """Publish without ever propagating a failure to the caller.

    Used by services after their writes have committed: the write has
    already succeeded, so dispatch problems are only logged.

    Returns:
        The published EventData, or None if there was no bus or dispatch failed.
    """
    if bus is None:
        return None
    try:
        return await bus.publish(event_type, payload, tenant_id=tenant_id)
    except Exception as e:
        logger.warning("Failed to dispatch event %s: %s", event_type, e)
        return None
