"""Inbound channel for campaign attribution from the embedding page."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any

from tradein.wizard.models import AttributionMetadata

logger = logging.getLogger(__name__)

AttributionCallback = Callable[[AttributionMetadata], None]


class Subscription:
    """Handle returned by :meth:`AttributionChannel.subscribe`."""

    def __init__(self, channel: AttributionChannel, callback: AttributionCallback) -> None:
        self._channel = channel
        self._callback = callback
        self.active = True

    def close(self) -> None:
        if self.active:
            self._channel._unsubscribe(self._callback)
            self.active = False

    def __enter__(self) -> Subscription:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


class AttributionChannel:
    """Delivers attribution bags from the host to subscribed wizards.

    Messages may arrive at any time and the last one wins. A new subscriber
    immediately receives the latest bag, if any. Nothing is sent back to the
    host.
    """

    def __init__(self) -> None:
        self._subscribers: list[AttributionCallback] = []
        self._latest: AttributionMetadata | None = None

    @property
    def latest(self) -> AttributionMetadata | None:
        return self._latest

    def publish(self, message: Any) -> None:
        if not isinstance(message, Mapping):
            logger.warning("Ignoring attribution message of type %s", type(message).__name__)
            return
        metadata = AttributionMetadata.from_message(message)
        self._latest = metadata
        for callback in list(self._subscribers):
            callback(metadata)

    def subscribe(self, callback: AttributionCallback) -> Subscription:
        self._subscribers.append(callback)
        if self._latest is not None:
            callback(self._latest)
        return Subscription(self, callback)

    def _unsubscribe(self, callback: AttributionCallback) -> None:
        try:
            self._subscribers.remove(callback)
        except ValueError:
            pass
