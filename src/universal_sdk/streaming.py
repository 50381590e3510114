"""Server-Sent Events decoding into validated event dictionaries."""

from __future__ import annotations

import codecs
import json
import logging
from typing import Any, AsyncIterator, Dict, Optional

import httpx

from .coercion import coerce_special_types
from .validation import ResponseValidator


logger = logging.getLogger(__name__)


def parse_event_data(data: str) -> Any:
    try:
        return json.loads(data)
    except ValueError:
        return data


class EventStream:
    """Lazy, single pass sequence of ``{"data": ..., "id": ...}`` events.

    Lines are split on ``\\n``; ``id:`` lines set an id that sticks to every
    later event until replaced, and each ``data:`` line yields one event.
    Each event is validated and coerced before it is handed out. ``aclose``
    releases the HTTP response; it also runs when the stream is exhausted or
    an event fails validation.
    """

    def __init__(
        self,
        response: httpx.Response,
        validator: Optional[ResponseValidator] = None,
        pointer: Optional[str] = None,
        schema: Optional[Dict[str, Any]] = None,
        version: str = "latest",
    ) -> None:
        self.response = response
        self.validator = validator
        self.pointer = pointer
        self.schema = schema
        self.version = version
        self.last_event_id: Optional[str] = None
        self._chunks: AsyncIterator[bytes] = response.aiter_bytes()
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""
        self._done = False
        self._closed = False

    def __aiter__(self) -> "EventStream":
        return self

    async def __anext__(self) -> Dict[str, Any]:
        try:
            event = await self._next_event()
        except Exception:
            await self.aclose()
            raise
        if event is None:
            await self.aclose()
            raise StopAsyncIteration
        return event

    async def __aenter__(self) -> "EventStream":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    @property
    def closed(self) -> bool:
        return self._closed

    async def aclose(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._done = True
        self._buffer = ""
        logger.debug("Closing event stream (last event id %s)", self.last_event_id)
        await self.response.aclose()

    async def _next_event(self) -> Optional[Dict[str, Any]]:
        while True:
            newline = self._buffer.find("\n")
            if newline >= 0:
                line = self._buffer[:newline].strip()
                self._buffer = self._buffer[newline + 1 :]
                event = self._consume_line(line)
                if event is not None:
                    return self._emit(event)
                continue

            if self._done:
                return None

            try:
                chunk = await self._chunks.__anext__()
            except StopAsyncIteration:
                self._done = True
                self._buffer += self._decoder.decode(b"", final=True)
                event = self._consume_tail()
                if event is not None:
                    return self._emit(event)
                continue

            self._buffer += self._decoder.decode(chunk)

    def _consume_line(self, line: str) -> Optional[Dict[str, Any]]:
        if line.startswith("id:"):
            self.last_event_id = line[3:].strip()
        elif line.startswith("data:"):
            return {"data": parse_event_data(line[5:].strip()), "id": self.last_event_id}
        return None

    def _consume_tail(self) -> Optional[Dict[str, Any]]:
        tail, self._buffer = self._buffer.strip(), ""
        if not tail:
            return None
        event_id: Optional[str] = None
        data: Optional[str] = None
        for raw_line in tail.split("\n"):
            line = raw_line.strip()
            if line.startswith("id:"):
                event_id = line[3:].strip()
            elif line.startswith("data:"):
                data = line[5:].strip()
        if data is None:
            return None
        return {"data": parse_event_data(data), "id": event_id if event_id is not None else self.last_event_id}

    def _emit(self, event: Dict[str, Any]) -> Dict[str, Any]:
        # an unset id is absent, not null, as far as the schema is concerned
        if event.get("id") is None:
            event.pop("id", None)
        if self.validator is not None and self.pointer is not None:
            self.validator.validate(event, self.pointer, self.version)
        event = coerce_special_types(event, self.schema)
        event.setdefault("id", None)
        return event
