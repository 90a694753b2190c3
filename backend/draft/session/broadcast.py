"""Fan-out of one message to every subscriber of a session."""

from __future__ import annotations

import contextlib
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Iterable

    from draft.session.models import Subscriber


async def broadcast_to_subscribers(
    subscribers: Iterable[Subscriber],
    message: dict[str, Any],
) -> None:
    """Send `message` to each subscriber, skipping connections that already dropped.

    The caller passes a snapshot (a list), since a disconnect may remove
    subscriptions while we yield on send_message.
    """
    for subscriber in subscribers:
        with contextlib.suppress(RuntimeError, OSError):
            await subscriber.connection.send_message(message)
