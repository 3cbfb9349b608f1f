from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from typing import Protocol

from app.models.climate import ClimateEvent


class StreamState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    RECONNECT_PENDING = "reconnect_pending"
    CLOSING = "closing"


class ClimateEventSink(Protocol):
    """Anything that accepts validated events (the climate service, the builder)."""

    def process_event(self, event: ClimateEvent) -> None:
        ...


class ClimateStreamProvider(ABC):
    """
    Provider contract (interface).

    Any provider must implement:
    - connect(): start the live stream on the running event loop
    - disconnect(): stop it for good (no reconnects afterwards)
    - state: where the connection lifecycle currently is
    """

    @property
    @abstractmethod
    def state(self) -> StreamState:
        raise NotImplementedError

    @abstractmethod
    def connect(self) -> None:
        raise NotImplementedError

    @abstractmethod
    async def disconnect(self) -> None:
        raise NotImplementedError
