"""Account activity listener.

This module provides:
- AccountActivityListener: WebSocket client that receives wallet account
  notifications and reports transactions through a callback

Architecture:
    Platform ─push─► AccountActivityListener ─on_transaction()─► LazyResource.touch()

The listener only re-stamps the account's synced time; it never re-runs
account initialization.
"""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
import ssl
import threading
from collections.abc import Callable
from typing import TYPE_CHECKING

import websockets
from websockets.exceptions import WebSocketException

if TYPE_CHECKING:
    from websockets.asyncio.client import ClientConnection

    from docsync.core.config import ServerConfig

logger = logging.getLogger(__name__)

TRANSACTION_MESSAGE = "TRANSACTION"


class AccountActivityListener:
    """WebSocket listener for wallet account activity.

    Usage:
        listener = AccountActivityListener(server_config, account.touch)
        listener.start()
        # ...
        listener.stop()
    """

    def __init__(
        self,
        config: ServerConfig,
        on_transaction: Callable[[], object],
        reconnect_delay: float = 5.0,
    ) -> None:
        """Initialize the listener.

        Args:
            config: Server configuration with URL and token.
            on_transaction: Called for every transaction notification.
            reconnect_delay: Delay between reconnection attempts.
        """
        self._config = config
        self._on_transaction = on_transaction
        self._reconnect_delay = reconnect_delay

        # Connection state
        self._ws: ClientConnection | None = None
        self._connected = False
        self._should_run = False

        # Thread and loop
        self._thread: threading.Thread | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._stop_event: asyncio.Event | None = None

    @property
    def connected(self) -> bool:
        """Check if currently connected."""
        return self._connected

    @property
    def running(self) -> bool:
        """Check if the listener thread is alive."""
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the listener in a background thread."""
        if self.running:
            logger.debug("AccountActivityListener already running")
            return

        self._should_run = True
        self._thread = threading.Thread(
            target=self._run_loop,
            name="AccountActivityListener",
            daemon=True,
        )
        self._thread.start()
        logger.info("AccountActivityListener started")

    def stop(self) -> None:
        """Stop the listener."""
        self._should_run = False

        if self._loop and self._stop_event:
            asyncio.run_coroutine_threadsafe(self._signal_stop(), self._loop)

        if self._loop and self._ws:
            with contextlib.suppress(TimeoutError):
                asyncio.run_coroutine_threadsafe(
                    self._close_connection(), self._loop
                ).result(timeout=2.0)

        if self._thread:
            self._thread.join(timeout=5.0)
            self._thread = None

        logger.info("AccountActivityListener stopped")

    def handle_message(self, message: str | bytes) -> bool:
        """Handle one notification.

        Args:
            message: Raw message, e.g. ``{"type": "TRANSACTION"}``.

        Returns:
            True if the message reported a transaction.
        """
        if isinstance(message, bytes):
            message = message.decode("utf-8")
        try:
            data = json.loads(message)
        except json.JSONDecodeError:
            logger.warning("Invalid message received: %s", message[:100])
            return False

        if not isinstance(data, dict) or data.get("type") != TRANSACTION_MESSAGE:
            return False

        logger.debug("Account transaction reported: %s", data.get("txid"))
        self._on_transaction()
        return True

    async def _signal_stop(self) -> None:
        if self._stop_event:
            self._stop_event.set()

    def _run_loop(self) -> None:
        """Run the async event loop in a thread."""
        self._loop = asyncio.new_event_loop()
        asyncio.set_event_loop(self._loop)
        self._stop_event = asyncio.Event()

        try:
            self._loop.run_until_complete(self._connection_loop())
        finally:
            self._loop.close()
            self._loop = None
            self._stop_event = None

    async def _connection_loop(self) -> None:
        """Main connection loop with automatic reconnection."""
        while self._should_run:
            try:
                await self._connect()
                await self._listen_for_messages()
            except WebSocketException as e:
                logger.debug("WebSocket error: %s", e)
            except OSError as e:
                logger.debug("Connection error: %s", e)

            self._connected = False
            if not self._should_run:
                break

            logger.debug(
                "AccountActivityListener reconnecting in %.0fs...",
                self._reconnect_delay,
            )
            try:
                await asyncio.wait_for(
                    self._stop_event.wait(),  # type: ignore[union-attr]
                    timeout=self._reconnect_delay,
                )
                break
            except TimeoutError:
                pass

    async def _connect(self) -> None:
        """Establish WebSocket connection."""
        ssl_context: ssl.SSLContext | None = None
        if self._config.is_secure:
            ssl_context = ssl.create_default_context()
            if not self._config.verify_ssl:
                ssl_context.check_hostname = False
                ssl_context.verify_mode = ssl.CERT_NONE

        self._ws = await websockets.connect(
            self._config.ws_url,
            ssl=ssl_context,
            open_timeout=10,
            close_timeout=5,
        )
        self._connected = True
        logger.info("AccountActivityListener connected")

    async def _listen_for_messages(self) -> None:
        """Listen for incoming messages from the platform."""
        while self._should_run and self._ws:
            try:
                message = await asyncio.wait_for(self._ws.recv(), timeout=30.0)
            except TimeoutError:
                continue
            except websockets.ConnectionClosed:
                logger.info("Connection closed by server")
                break
            self.handle_message(message)

    async def _close_connection(self) -> None:
        """Close the WebSocket connection."""
        if self._ws:
            with contextlib.suppress(WebSocketException):
                await self._ws.close()
            self._ws = None
        self._connected = False
