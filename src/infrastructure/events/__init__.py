# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Event infrastructure: in-process bus, event names and notification relay."""

from src.infrastructure.events.bus import EventBus, EventData, EventHandler, publish_safely
from src.infrastructure.events.relay import NotificationRelay
from src.infrastructure.events.types import EventTypes

__all__ = [
    "EventBus",
    "EventData",
    "EventHandler",
    "EventTypes",
    "NotificationRelay",
    "publish_safely",
]
