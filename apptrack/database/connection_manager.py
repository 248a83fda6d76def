"""
Connection Manager - owns the lifecycle of the service's database connection.

Establishes the connection, watches transport events and repairs the
connection on failure, while guaranteeing that at most one attempt is in
flight and at most one retry is pending.

Two retry cycles exist:
    - after a failed connect(): exponential backoff, base_delay * 2^(n-1),
      stopping once max_attempts consecutive failures have been recorded
    - after a `disconnected` event: one reconnect after base_delay, starting
      a fresh cycle with the failure counter reset
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any

from apptrack.core.config.settings import settings as default_settings

from .connection_state import ConnectionState, TransportEvent
from .errors import classify_failure
from .reconnection import ReconnectionConfig, ReconnectionStrategy
from .timer import RetryTimer
from .transport import ConnectionOptions, DatabaseTransport

logger = logging.getLogger(__name__)


class ConnectionManager:
    """
    Process-wide manager for a single logical database connection.

    State is never stored here: status() always reads the transport's own
    readiness. The manager only owns the attempt guard, the failure counter
    and the pending retry timer.

    Usage:
        manager = ConnectionManager(MotorTransport())
        manager.trigger_connect()          # non-blocking, at startup
        ...
        if manager.status() is ConnectionState.CONNECTED:
            ...
    """

    def __init__(
        self,
        transport: DatabaseTransport,
        *,
        url_provider: Callable[[], str | None] | None = None,
        options: ConnectionOptions | None = None,
        reconnection: ReconnectionStrategy | None = None,
        timer: RetryTimer | None = None,
    ):
        """
        Create the manager and subscribe to transport events.

        Args:
            transport: Transport used to connect and to receive events
            url_provider: Returns the connection URL; read on every connect()
            options: Driver timeouts and pooling; defaults from settings
            reconnection: Retry counter and backoff policy; defaults from settings
            timer: Retry timer; defaults to one backed by the running loop
        """
        self._transport = transport
        self._url_provider = url_provider or (lambda: default_settings.mongodb_url)
        self._options = options or ConnectionOptions.from_settings(default_settings)
        self._reconnection = reconnection or ReconnectionStrategy(
            config=ReconnectionConfig(
                base_delay=default_settings.db_retry_base_delay,
                max_attempts=default_settings.db_max_retry_attempts,
            )
        )
        self._timer = timer or RetryTimer()
        self._is_connecting = False
        self._closed = False
        self._tasks: set[asyncio.Task] = set()
        self._handlers: dict[TransportEvent, Callable[..., None]] = {
            TransportEvent.CONNECTED: self._on_connected,
            TransportEvent.DISCONNECTED: self._on_disconnected,
            TransportEvent.ERROR: self._on_error,
        }

        for event, handler in self._handlers.items():
            self._transport.add_listener(event, handler)

    # ---------- queries -----------------------------------------------------

    def status(self) -> ConnectionState:
        """Current transport readiness. Pure read."""
        return self._transport.state

    @property
    def is_connected(self) -> bool:
        return self.status() is ConnectionState.CONNECTED

    @property
    def is_connecting(self) -> bool:
        """True while a connection attempt is in flight."""
        return self._is_connecting

    @property
    def retry_attempts(self) -> int:
        return self._reconnection.attempt_count

    @property
    def max_retry_attempts(self) -> int:
        return self._reconnection.config.max_attempts

    @property
    def base_delay(self) -> float:
        return self._reconnection.config.base_delay

    @property
    def retry_pending(self) -> bool:
        return self._timer.pending

    @property
    def transport(self) -> DatabaseTransport:
        return self._transport

    def get_status(self) -> dict[str, Any]:
        """Snapshot of the connection lifecycle for health reporting."""
        state = self.status()
        return {
            "state": state.value,
            "ready_state": state.ready_state,
            "is_connecting": self._is_connecting,
            "retry_attempts": self.retry_attempts,
            "max_retry_attempts": self.max_retry_attempts,
            "retry_pending": self._timer.pending,
            "next_retry_in": self._timer.delay,
        }

    # ---------- commands ----------------------------------------------------

    async def connect(self, *, reset_retries: bool = False) -> None:
        """
        Attempt to connect unless an attempt is running or already connected.

        Never raises for connection failures: they are logged, counted and
        retried with exponential backoff until max_retry_attempts is reached.

        Args:
            reset_retries: Start a fresh failure count before attempting
        """
        if self._is_connecting:
            logger.info("Connection attempt already in progress...")
            return

        if self.status() is ConnectionState.CONNECTED:
            logger.info("Database already connected")
            return

        url = self._url_provider()
        if not url:
            logger.error("MONGODB_URL environment variable is not set!")
            logger.error(
                "Add MONGODB_URL to the service environment and call connect() again."
            )
            return

        if reset_retries:
            self._reconnection.reset()

        self._is_connecting = True
        try:
            await self._transport.connect(url, self._options)
        except Exception as e:
            self._handle_connect_failure(e)
        finally:
            self._is_connecting = False

    def trigger_connect(self, *, reset_retries: bool = False) -> asyncio.Task:
        """
        Start connect() in the background and return immediately.

        Must be called from within the running event loop.
        """
        task = asyncio.get_running_loop().create_task(
            self.connect(reset_retries=reset_retries), name="database-connect"
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def close(self) -> None:
        """
        Release the connection at process shutdown.

        Detaches from transport events first so closing does not schedule a
        reconnect, then lets in-flight attempts finish and closes the transport.
        An attempt that fails after this point is not retried.
        """
        for event, handler in self._handlers.items():
            self._transport.remove_listener(event, handler)
        self._closed = True
        self._timer.cancel()

        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

        await self._transport.close()
        logger.info("Database connection closed")

    # ---------- failure path ------------------------------------------------

    def _handle_connect_failure(self, error: Exception) -> None:
        attempts = self._reconnection.record_failure()
        failure = classify_failure(error)

        logger.error(
            "Error connecting to database (Attempt %d/%d): %s",
            attempts,
            self.max_retry_attempts,
            failure.message,
        )
        for hint in failure.hints:
            logger.error("   %s", hint)

        if self._closed:
            logger.info("Connection manager closed; not retrying")
        elif self._reconnection.should_retry():
            delay = self._reconnection.calculate_delay()
            logger.info("Retrying connection in %g seconds...", delay)
            self._timer.schedule(delay, self._on_retry_timer)
        else:
            logger.error("Max retry attempts (%d) reached.", self.max_retry_attempts)
            logger.error(
                "Server will continue running, but database operations will fail."
            )
            logger.error("Restart the server or trigger connect() to retry.")

    def _on_retry_timer(self) -> None:
        self.trigger_connect()

    def _on_reconnect_timer(self) -> None:
        self._reconnection.reset()
        self.trigger_connect()

    # ---------- transport events --------------------------------------------

    def _on_connected(self) -> None:
        logger.info("MongoDB connected successfully")
        self._reconnection.reset()
        self._is_connecting = False

    def _on_disconnected(self) -> None:
        logger.warning("MongoDB disconnected.")
        if self._is_connecting or self.status() is not ConnectionState.DISCONNECTED:
            return

        logger.warning(
            "Scheduling reconnection attempt in %g seconds...", self.base_delay
        )
        self._timer.schedule(self.base_delay, self._on_reconnect_timer)

    def _on_error(self, error: Exception | None = None) -> None:
        failure = classify_failure(error if error is not None else "unknown error")
        logger.error("MongoDB connection error: %s", failure.message)
        if failure.hints:
            logger.error("   %s", failure.hints[0])
