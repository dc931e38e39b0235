# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Hand-off point for the real-time notification transport.

The transport itself (sockets, push) runs outside this service. The relay
subscribes to the events that users are notified about and forwards each
one, with its recipients, to a transport callable.
"""

import logging
from typing import Any, Awaitable, Callable, Optional

from src.infrastructure.events.bus import EventBus, EventData
from src.infrastructure.events.types import EventTypes

logger = logging.getLogger(__name__)

Transport = Callable[[str, list[str], dict[str, Any]], Awaitable[None]]


def _recipients(event: EventData) -> list[str]:
    payload = event.payload
    if event.event_type == EventTypes.Assignment.CREATED:
        return list(payload.get("student_ids", []))
    if event.event_type == EventTypes.Submission.GRADED:
        return [payload["student_id"]] if payload.get("student_id") else []
    if event.event_type == EventTypes.Submission.SUBMITTED:
        return [payload["assignment_creator_id"]] if payload.get("assignment_creator_id") else []
    return []


class NotificationRelay:
    """Forwards notifiable events to the real-time transport.

    Attributes:
        transport: Async callable taking (event_type, recipient ids, payload);
            when None, events are only logged.
    """

    NOTIFIABLE = (
        EventTypes.Assignment.CREATED,
        EventTypes.Submission.SUBMITTED,
        EventTypes.Submission.GRADED,
    )

    def __init__(self, transport: Optional[Transport] = None) -> None:
        self.transport = transport

    def attach(self, bus: EventBus) -> None:
        for event_type in self.NOTIFIABLE:
            bus.subscribe(event_type, self.handle)

    async def handle(self, event: EventData) -> None:
        recipients = _recipients(event)
        if not recipients:
            return
        logger.info(
            "Relaying %s to %d recipients (tenant: %s)",
            event.event_type,
            len(recipients),
            event.tenant_id,
        )
        if self.transport is not None:
            await self.transport(event.event_type, recipients, event.payload)
