# Copyright (c) Syntropy Systems
"""Signals and user notifications shared between workflow components."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Generic, Literal, TypeVar

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)

T = TypeVar("T")

NoticeLevel = Literal["success", "info", "error"]


class Channel(Generic[T]):
    """Async publish/subscribe channel carrying one payload type.

    Subscribers are awaited in registration order. A failing subscriber is
    logged and does not stop the others or the publisher.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._subscribers: list[Callable[[T], Awaitable[object]]] = []

    def subscribe(self, callback: Callable[[T], Awaitable[object]]) -> None:
        """Register a coroutine function to call on every emit."""
        self._subscribers.append(callback)

    def unsubscribe(self, callback: Callable[[T], Awaitable[object]]) -> None:
        """Remove a previously registered callback, if present."""
        if callback in self._subscribers:
            self._subscribers.remove(callback)

    async def emit(self, payload: T) -> None:
        """Deliver ``payload`` to every subscriber."""
        for callback in list(self._subscribers):
            try:
                await callback(payload)
            except Exception:
                logger.exception("Subscriber of %s channel failed", self.name)

    def __len__(self) -> int:
        return len(self._subscribers)


@dataclass(frozen=True)
class Notice:
    """A short, non-blocking message for the user."""

    level: NoticeLevel
    message: str


class Notifier:
    """Collects notices and forwards them to any attached sinks."""

    def __init__(self) -> None:
        self.notices: list[Notice] = []
        self._sinks: list[Callable[[Notice], None]] = []

    def add_sink(self, sink: Callable[[Notice], None]) -> None:
        self._sinks.append(sink)

    def notify(self, level: NoticeLevel, message: str) -> Notice:
        notice = Notice(level, message)
        self.notices.append(notice)
        for sink in self._sinks:
            try:
                sink(notice)
            except Exception:
                logger.exception("Notice sink failed")
        return notice

    def success(self, message: str) -> Notice:
        return self.notify("success", message)

    def info(self, message: str) -> Notice:
        return self.notify("info", message)

    def error(self, message: str) -> Notice:
        return self.notify("error", message)
