"""
Database transport - the driver-facing side of the connection lifecycle.

A transport establishes the connection, reports its own readiness state and
notifies registered listeners of `connected`, `disconnected` and `error`
events. MotorTransport derives those events from PyMongo's topology and
heartbeat monitoring.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol

from motor.motor_asyncio import AsyncIOMotorClient
from pymongo import monitoring

from .connection_state import ConnectionState, TransportEvent

if TYPE_CHECKING:
    from motor.motor_asyncio import AsyncIOMotorDatabase

    from apptrack.core.config.settings import Settings

logger = logging.getLogger(__name__)

Listener = Callable[..., None]


@dataclass(frozen=True)
class ConnectionOptions:
    """Driver timeouts and pooling parameters for a connection attempt."""

    server_selection_timeout_ms: int = 10000
    socket_timeout_ms: int = 45000
    connect_timeout_ms: int = 10000
    retry_writes: bool = True
    min_pool_size: int = 2
    max_pool_size: int = 10
    max_idle_time_ms: int = 30000
    heartbeat_frequency_ms: int = 10000

    @classmethod
    def from_settings(cls, settings: Settings) -> ConnectionOptions:
        return cls(
            server_selection_timeout_ms=settings.mongodb_server_selection_timeout_ms,
            socket_timeout_ms=settings.mongodb_socket_timeout_ms,
            connect_timeout_ms=settings.mongodb_connect_timeout_ms,
            min_pool_size=settings.mongodb_min_pool_size,
            max_pool_size=settings.mongodb_max_pool_size,
            max_idle_time_ms=settings.mongodb_max_idle_time_ms,
            heartbeat_frequency_ms=settings.mongodb_heartbeat_frequency_ms,
        )

    def to_client_kwargs(self) -> dict[str, Any]:
        """Keyword arguments in the form MongoClient expects."""
        return {
            "serverSelectionTimeoutMS": self.server_selection_timeout_ms,
            "socketTimeoutMS": self.socket_timeout_ms,
            "connectTimeoutMS": self.connect_timeout_ms,
            "retryWrites": self.retry_writes,
            "minPoolSize": self.min_pool_size,
            "maxPoolSize": self.max_pool_size,
            "maxIdleTimeMS": self.max_idle_time_ms,
            "heartbeatFrequencyMS": self.heartbeat_frequency_ms,
        }


class DatabaseTransport(Protocol):
    """Capability consumed by ConnectionManager."""

    @property
    def state(self) -> ConnectionState: ...

    async def connect(self, url: str, options: ConnectionOptions) -> None:
        """Establish the connection; raise on failure."""
        ...

    async def close(self) -> None: ...

    def add_listener(self, event: TransportEvent, callback: Listener) -> None: ...

    def remove_listener(self, event: TransportEvent, callback: Listener) -> None: ...


class BaseTransport:
    """
    Listener registry and state bookkeeping shared by transports.

    Subclasses change state only through _set_state(), which emits
    `connected` on entering CONNECTED and `disconnected` when an established
    connection (CONNECTED or DISCONNECTING) drops to DISCONNECTED. A failed
    initial attempt therefore emits nothing; the caller sees the exception.
    """

    def __init__(self) -> None:
        self._state = ConnectionState.DISCONNECTED
        self._listeners: dict[TransportEvent, list[Listener]] = {
            event: [] for event in TransportEvent
        }

    @property
    def state(self) -> ConnectionState:
        return self._state

    def add_listener(self, event: TransportEvent, callback: Listener) -> None:
        if callback not in self._listeners[event]:
            self._listeners[event].append(callback)

    def remove_listener(self, event: TransportEvent, callback: Listener) -> None:
        if callback in self._listeners[event]:
            self._listeners[event].remove(callback)

    def listener_count(self, event: TransportEvent) -> int:
        return len(self._listeners[event])

    def _emit(self, event: TransportEvent, *args: Any) -> None:
        for callback in list(self._listeners[event]):
            try:
                callback(*args)
            except Exception as e:
                logger.error(
                    "Listener %r failed handling '%s' event: %s",
                    callback,
                    event.value,
                    e,
                    exc_info=True,
                )

    def _set_state(self, new_state: ConnectionState) -> None:
        old_state = self._state
        if new_state is old_state:
            return
        self._state = new_state
        logger.debug("Transport state %s -> %s", old_state.value, new_state.value)

        if new_state is ConnectionState.CONNECTED:
            self._emit(TransportEvent.CONNECTED)
        elif new_state is ConnectionState.DISCONNECTED and old_state in (
            ConnectionState.CONNECTED,
            ConnectionState.DISCONNECTING,
        ):
            self._emit(TransportEvent.DISCONNECTED)


class _DriverMonitor(monitoring.TopologyListener, monitoring.ServerHeartbeatListener):
    """
    PyMongo listener bound to one client.

    PyMongo calls these methods from its monitor threads; every notification
    is forwarded to the event loop so transport state only changes there.
    """

    def __init__(self, transport: MotorTransport, loop: asyncio.AbstractEventLoop):
        self._transport = transport
        self._loop = loop

    def _forward(self, handler: Callable[..., None], *args: Any) -> None:
        try:
            self._loop.call_soon_threadsafe(handler, self, *args)
        except RuntimeError:
            # loop already closed during interpreter shutdown
            logger.debug("Dropped driver notification: event loop is closed")

    # TopologyListener
    def opened(self, event: monitoring.TopologyOpenedEvent) -> None:
        pass

    def description_changed(
        self, event: monitoring.TopologyDescriptionChangedEvent
    ) -> None:
        # Events are delivered late and in batches; the payload is only a wake-up
        self._forward(self._transport._on_topology_changed)

    def closed(self, event: monitoring.TopologyClosedEvent) -> None:
        pass

    # ServerHeartbeatListener
    def started(self, event: monitoring.ServerHeartbeatStartedEvent) -> None:
        pass

    def succeeded(self, event: monitoring.ServerHeartbeatSucceededEvent) -> None:
        pass

    def failed(self, event: monitoring.ServerHeartbeatFailedEvent) -> None:
        self._forward(self._transport._on_heartbeat_failed, event.reply)


class MotorTransport(BaseTransport):
    """
    MongoDB transport backed by Motor's AsyncIOMotorClient.

    connect() creates a client and verifies it with a `ping`; afterwards the
    driver keeps monitoring the deployment and this transport turns topology
    changes into `connected` / `disconnected` events and heartbeat failures
    of an established connection into `error` events.

    Example:
        transport = MotorTransport()
        transport.add_listener(TransportEvent.CONNECTED, on_connected)
        await transport.connect("mongodb://localhost:27017/apptrack", ConnectionOptions())
        jobs = transport.get_database()["jobs"]
    """

    def __init__(self, client_factory: Callable[..., Any] = AsyncIOMotorClient):
        super().__init__()
        self._client_factory = client_factory
        self._client: Any | None = None
        self._monitor: _DriverMonitor | None = None

    @property
    def client(self) -> Any | None:
        """The active Motor client, if any."""
        return self._client

    def get_database(self, name: str | None = None) -> AsyncIOMotorDatabase:
        """
        Get a database handle from the active client.

        Args:
            name: Database name; defaults to the database named in the URL

        Raises:
            RuntimeError: If no client has been created yet
        """
        if self._client is None:
            raise RuntimeError("MotorTransport.get_database() called before connect()")
        if name:
            return self._client[name]
        return self._client.get_default_database()

    async def connect(self, url: str, options: ConnectionOptions) -> None:
        """
        Create a client for url and wait until the deployment answers a ping.

        Raises:
            pymongo.errors.PyMongoError: On invalid URLs, DNS, auth or timeout failures
        """
        loop = asyncio.get_running_loop()
        self._discard_client()
        self._set_state(ConnectionState.CONNECTING)

        monitor = _DriverMonitor(self, loop)
        try:
            client = self._client_factory(
                url, event_listeners=[monitor], **options.to_client_kwargs()
            )
            self._client = client
            self._monitor = monitor
            await client.admin.command("ping")
        except Exception:
            self._discard_client()
            self._set_state(ConnectionState.DISCONNECTED)
            raise

        self._set_state(ConnectionState.CONNECTED)

    async def close(self) -> None:
        """Close the client; an established connection reports `disconnected`."""
        if self._client is None:
            self._set_state(ConnectionState.DISCONNECTED)
            return

        self._set_state(ConnectionState.DISCONNECTING)
        self._discard_client()
        self._set_state(ConnectionState.DISCONNECTED)

    def _discard_client(self) -> None:
        client, self._client = self._client, None
        self._monitor = None
        if client is not None:
            client.close()

    def _on_topology_changed(self, monitor: _DriverMonitor) -> None:
        if monitor is not self._monitor or self._client is None:
            return

        # Decide from the client's current view, not the queued event
        has_server = self._client.topology_description.has_writable_server()

        if self._state is ConnectionState.CONNECTED and not has_server:
            logger.warning("MongoDB deployment no longer has a reachable primary")
            self._set_state(ConnectionState.DISCONNECTED)
        elif self._state is ConnectionState.DISCONNECTED and has_server:
            logger.info("MongoDB driver re-established the connection")
            self._set_state(ConnectionState.CONNECTED)

    def _on_heartbeat_failed(self, monitor: _DriverMonitor, error: Exception) -> None:
        if monitor is not self._monitor or self._state is not ConnectionState.CONNECTED:
            return
        self._emit(TransportEvent.ERROR, error)
