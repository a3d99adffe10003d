"""EventBus - in-process event delivery for sheet operations

One chain = one sheet operation (see reset_chain). Within a chain:
- handlers run synchronously, in subscription order
- nesting is capped at MAX_DEPTH
- a source emits a given event type at most once

SheetService subscribes to its own item events to recompute the sheet,
so an item change and the condition updates it causes share one chain.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Callable

from charsheet.core.logging import get_logger

logger = get_logger(__name__)

MAX_DEPTH = 5


@dataclass
class SheetEvent:
    """Event payload. ``data`` carries identifiers only (character_id, item_id, key)."""

    event_type: str
    data: dict[str, Any]
    source: str

    _depth: int = field(default=0, repr=False)


EventHandler = Callable[[SheetEvent], None]


class EventBus:
    """Synchronous publish/subscribe

    Usage:
        bus = EventBus()
        bus.subscribe(EventTypes.ITEM_CREATED, service._on_items_changed)
        bus.emit(SheetEvent(EventTypes.ITEM_CREATED, {"character_id": "c1"}, "sheet_service"))
    """

    def __init__(self) -> None:
        self._handlers: dict[str, list[EventHandler]] = defaultdict(list)
        self._depth = 0
        self._chain: set[tuple[str, str]] = set()  # (source, event_type)

    def subscribe(self, event_type: str, handler: EventHandler) -> None:
        self._handlers[event_type].append(handler)
        logger.debug("subscribe %s -> %s", event_type, handler.__qualname__)

    def unsubscribe(self, event_type: str, handler: EventHandler) -> None:
        handlers = self._handlers.get(event_type)
        if not handlers or handler not in handlers:
            logger.warning(
                "Handler not registered: %s -> %s", event_type, handler.__qualname__
            )
            return
        handlers.remove(handler)

    def emit(self, event: SheetEvent) -> None:
        """Deliver ``event`` to its handlers.

        Dropped with a warning past MAX_DEPTH or when repeated within the
        chain. Handler exceptions are logged and do not reach the emitter.
        """
        if self._depth >= MAX_DEPTH:
            logger.warning(
                "Depth limit %d reached, dropped %s:%s",
                MAX_DEPTH,
                event.source,
                event.event_type,
            )
            return

        key = (event.source, event.event_type)
        if key in self._chain:
            logger.warning("Duplicate in chain, dropped %s:%s", *key)
            return
        self._chain.add(key)
        event._depth = self._depth

        handlers = list(self._handlers.get(event.event_type, ()))
        if not handlers:
            logger.debug("No subscribers for %s", event.event_type)
            return

        logger.debug(
            "emit %s from %s (depth=%d, handlers=%d)",
            event.event_type,
            event.source,
            self._depth,
            len(handlers),
        )
        self._depth += 1
        try:
            for handler in handlers:
                try:
                    handler(event)
                except Exception:
                    logger.exception(
                        "Handler %s failed on %s", handler.__qualname__, event.event_type
                    )
        finally:
            self._depth -= 1

    def reset_chain(self) -> None:
        """Start a new chain. Called at the top of each sheet operation."""
        self._chain.clear()
        self._depth = 0

    def clear(self) -> None:
        self._handlers.clear()
        self.reset_chain()

    @property
    def handler_count(self) -> int:
        return sum(len(h) for h in self._handlers.values())
