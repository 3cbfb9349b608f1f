from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, AsyncContextManager, Callable, Optional

import websockets
from websockets.exceptions import WebSocketException

from app.models.climate import InvalidEvent, validate_climate_event
from app.providers.base import ClimateEventSink, ClimateStreamProvider, StreamState

log = logging.getLogger("open_meteo_stream")

Connector = Callable[[str], AsyncContextManager[Any]]
Scheduler = Callable[..., Any]


def default_connector(url: str) -> AsyncContextManager[Any]:
    return websockets.connect(url, ping_interval=20, ping_timeout=20)


class OpenMeteoStreamClient(ClimateStreamProvider):
    """
    Open-Meteo weather stream (WS).

    Lifecycle:
      DISCONNECTED -> CONNECTING -> CONNECTED
      CONNECTED --(error/close)--> RECONNECT_PENDING --(delay)--> CONNECTING
      disconnect() -> CLOSING -> DISCONNECTED, and no reconnect ever again

    Each session runs as one asyncio task: open, then messages in delivery
    order, then close. Reconnects happen on a flat delay with no retry cap.

    connector / call_later are injectable so tests can drive the socket and
    the reconnect timer by hand.
    """

    def __init__(
        self,
        url: str,
        sink: ClimateEventSink,
        reconnect_delay_seconds: float = 5.0,
        connector: Optional[Connector] = None,
        call_later: Optional[Scheduler] = None,
    ) -> None:
        self.url = url
        self.sink = sink
        self.reconnect_delay_seconds = reconnect_delay_seconds
        self._connector = connector or default_connector
        self._call_later = call_later

        self._state = StreamState.DISCONNECTED
        self._closing = False
        self._ws: Any = None
        self._task: Optional[asyncio.Task] = None
        self._reconnect_handle: Any = None
        self.connect_attempts = 0

    @property
    def state(self) -> StreamState:
        return self._state

    @property
    def reconnect_pending(self) -> bool:
        return self._reconnect_handle is not None

    # -------------------------
    # Public interface used by the app
    # -------------------------
    def connect(self) -> None:
        """Open a new session on the running loop. No-op once disconnect() was called."""
        if self._closing:
            log.warning("Stream connect ignored, client is closed url=%s", self.url)
            return
        if self._task is not None and not self._task.done():
            log.debug("Stream session already running url=%s", self.url)
            return

        self._state = StreamState.CONNECTING
        self.connect_attempts += 1
        log.info("Connecting to stream url=%s attempt=%d", self.url, self.connect_attempts)
        self._task = asyncio.get_running_loop().create_task(self._session())

    async def disconnect(self) -> None:
        """Close the socket, cancel any pending reconnect, and stay down."""
        self._closing = True
        self._state = StreamState.CLOSING
        self._cancel_reconnect()

        ws, task = self._ws, self._task
        if ws is not None:
            try:
                await ws.close()
            except (OSError, WebSocketException) as e:
                log.warning("Stream close failed url=%s error=%s", self.url, e)

        if task is not None and not task.done():
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)

        self._ws = None
        self._task = None
        self._state = StreamState.DISCONNECTED
        log.info("Stream disconnected url=%s", self.url)

    # -------------------------
    # Session
    # -------------------------
    async def _session(self) -> None:
        try:
            async with self._connector(self.url) as ws:
                self._ws = ws
                self.on_open()
                async for raw in ws:
                    self.on_message(raw)
        except (OSError, WebSocketException) as e:
            self.on_error(e)
        except Exception as e:
            # open timeouts on 3.10, sink failures; CancelledError still propagates
            self.on_error(e)
        finally:
            self._ws = None
            self._task = None
            self.on_close()

    # -------------------------
    # Connection notifications
    # -------------------------
    def on_open(self) -> None:
        self._cancel_reconnect()
        self._state = StreamState.CONNECTED
        log.info("Stream connected url=%s", self.url)

    def on_message(self, raw: Any) -> None:
        """Decode, validate and forward one message. Bad messages are logged and dropped."""
        try:
            if isinstance(raw, (bytes, bytearray)):
                raw = raw.decode("utf-8")
            data = json.loads(raw)
        except (TypeError, ValueError) as e:
            log.error("Failed to parse stream message error=%s raw=%.200r", e, raw)
            return

        result = validate_climate_event(data)
        if isinstance(result, InvalidEvent):
            log.warning("Invalid stream event event=%s errors=%s", result.payload, result.errors)
            return

        self.sink.process_event(result.event)

    def on_error(self, error: BaseException) -> None:
        # Reconnects are driven by on_close only.
        log.error("Stream error url=%s error=%r", self.url, error)

    def on_close(self) -> None:
        if self._closing:
            self._state = StreamState.DISCONNECTED
            return

        if self._reconnect_handle is not None:
            return

        self._state = StreamState.RECONNECT_PENDING
        log.warning(
            "Stream disconnected, reconnecting in %ss url=%s",
            self.reconnect_delay_seconds,
            self.url,
        )
        call_later = self._call_later or asyncio.get_running_loop().call_later
        self._reconnect_handle = call_later(self.reconnect_delay_seconds, self._reconnect)

    # -------------------------
    # Reconnect timer
    # -------------------------
    def _reconnect(self) -> None:
        self._reconnect_handle = None
        if self._closing:
            return
        self.connect()

    def _cancel_reconnect(self) -> None:
        if self._reconnect_handle is not None:
            self._reconnect_handle.cancel()
            self._reconnect_handle = None
