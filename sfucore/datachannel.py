"""Data channels with middleware chains run on each message."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any

MessageProcessor = Callable[["ProcessArgs"], None]
Middleware = Callable[[MessageProcessor], MessageProcessor]


@dataclass
class ProcessArgs:
    """What a message processor receives."""

    peer: Any
    message: Any
    data_channel: Any


def chain(middlewares: Sequence[Middleware], last: MessageProcessor) -> MessageProcessor:
    """Wrap ``last`` so the first middleware runs first."""
    handler = last
    for middleware in reversed(middlewares):
        handler = middleware(handler)
    return handler


class Datachannel:
    """A labelled data channel negotiated with every peer that joins."""

    def __init__(self, label: str) -> None:
        self.label = label
        self.middlewares: list[Middleware] = []
        self._on_message: MessageProcessor | None = None

    def use(self, *args: Middleware) -> None:
        """Append middlewares run before the message handler."""
        self.middlewares.extend(args)

    def on_message(self, fn: MessageProcessor) -> None:
        """Set the handler called after all middlewares."""
        self._on_message = fn

    def processor(self) -> MessageProcessor:
        """Build the processor running the middlewares and then the handler."""

        def last(args: ProcessArgs) -> None:
            if self._on_message is not None:
                self._on_message(args)

        return chain(list(self.middlewares), last)