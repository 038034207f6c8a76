"""Push channel for full record snapshots.

This module provides:
- RecordSubscription: WebSocket client that receives a full snapshot of
  one record every time it changes on the backend

Architecture:
    Backend ─push─► RecordSubscription ─► asyncio.Queue ─► RecordSyncCore

The socket speaks the ``graphql-transport-ws`` subprotocol. The backend
subscription is not filtered by id, so snapshots for other records are
dropped here. Disconnects are retried with exponential backoff; the stream
only ends when ``cancel()`` is called.
"""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
import ssl
import uuid
from typing import TYPE_CHECKING, Any

import websockets
from websockets.exceptions import WebSocketException
from websockets.typing import Subprotocol

from feedbacksync.client import graphql
from feedbacksync.client.model import Record
from feedbacksync.core.config import SubscriptionConfig
from feedbacksync.core.errors import MalformedRecordError

if TYPE_CHECKING:
    from websockets.asyncio.client import ClientConnection

    from feedbacksync.core.config import BackendConfig

logger = logging.getLogger(__name__)

SUBPROTOCOL = Subprotocol("graphql-transport-ws")

_CLOSED = object()


class SubscriptionHandshakeError(Exception):
    """The server refused or did not acknowledge the connection."""


class RecordSubscription:
    """Long-lived stream of snapshots for one record.

    Usage:
        subscription = RecordSubscription(config, record_id)
        subscription.start()

        async for record in subscription:
            ...  # each item is a full Record

        subscription.cancel()  # from elsewhere; ends the loop above
    """

    def __init__(
        self,
        config: BackendConfig,
        record_id: str,
        ws_config: SubscriptionConfig | None = None,
    ) -> None:
        """Initialize the subscription.

        Args:
            config: Backend configuration with URL, token, and settings.
            record_id: Id of the record to follow.
            ws_config: Reconnection settings.
        """
        self._config = config
        self._record_id = record_id
        self._ws_config = ws_config or SubscriptionConfig()

        # Connection state
        self._ws: ClientConnection | None = None
        self._connected = False
        self._should_run = False
        self._cancelled = False
        self._task: asyncio.Task[None] | None = None
        self._operation_id = str(uuid.uuid4())

        # Delivery
        self._queue: asyncio.Queue[Any] = asyncio.Queue()

        # Reconnection state
        self._reconnect_delay = self._ws_config.reconnect_min_delay

    @property
    def record_id(self) -> str:
        """Id of the followed record."""
        return self._record_id

    @property
    def connected(self) -> bool:
        """Check if currently connected."""
        return self._connected

    @property
    def running(self) -> bool:
        """Check if the connection loop is active."""
        return self._should_run

    @property
    def ws_url(self) -> str:
        """Get the WebSocket URL."""
        return self._config.ws_url

    def start(self) -> None:
        """Start the connection loop on the running event loop."""
        if self._task and not self._task.done():
            logger.warning("Subscription for %s already running", self._record_id)
            return
        if self._cancelled:
            logger.warning("Subscription for %s was cancelled", self._record_id)
            return

        self._should_run = True
        self._task = asyncio.create_task(
            self._connection_loop(),
            name=f"RecordSubscription-{self._record_id}",
        )
        logger.info("Subscription for %s started", self._record_id)

    def cancel(self) -> None:
        """Stop the stream. Safe to call more than once."""
        if self._cancelled:
            return

        self._cancelled = True
        self._should_run = False
        if self._task:
            self._task.cancel()
            self._task = None
        self._queue.put_nowait(_CLOSED)
        logger.info("Subscription for %s cancelled", self._record_id)

    def __aiter__(self) -> RecordSubscription:
        return self

    async def __anext__(self) -> Record:
        item = await self._queue.get()
        if item is _CLOSED:
            # Keep the marker so every later read also stops
            self._queue.put_nowait(_CLOSED)
            raise StopAsyncIteration
        return item  # type: ignore[no-any-return]

    async def _connection_loop(self) -> None:
        """Main connection loop with automatic reconnection."""
        was_connected = False

        try:
            while self._should_run:
                try:
                    await self._connect()

                    if self._connected:
                        was_connected = True
                        self._reconnect_delay = self._ws_config.reconnect_min_delay
                        await self._listen_for_messages()

                except WebSocketException as e:
                    if was_connected:
                        logger.warning("Subscription for %s disconnected: %s", self._record_id, e)
                    logger.debug("WebSocket error: %s", e)
                except (ConnectionRefusedError, OSError) as e:
                    if was_connected:
                        logger.warning("Subscription for %s connection lost", self._record_id)
                    logger.debug("Connection error: %s", e)
                except (SubscriptionHandshakeError, TimeoutError) as e:
                    logger.warning("Subscription for %s handshake failed: %s", self._record_id, e)
                except Exception as e:
                    logger.warning("Subscription for %s error: %s", self._record_id, e)
                    logger.debug("Full traceback:", exc_info=True)

                await self._close_connection()

                if not self._should_run:
                    break

                logger.info(
                    "Subscription for %s reconnecting in %.0fs...",
                    self._record_id,
                    self._reconnect_delay,
                )
                await asyncio.sleep(self._reconnect_delay)

                self._reconnect_delay = min(
                    self._reconnect_delay * self._ws_config.reconnect_backoff,
                    self._ws_config.reconnect_max_delay,
                )
        finally:
            await self._close_connection()

    async def _connect(self) -> None:
        """Open the socket, complete the handshake and subscribe."""
        ssl_context: ssl.SSLContext | None = None
        if self.ws_url.startswith("wss://"):
            ssl_context = ssl.create_default_context()
            if not self._config.verify_ssl:
                ssl_context.check_hostname = False
                ssl_context.verify_mode = ssl.CERT_NONE

        self._ws = await websockets.connect(
            self.ws_url,
            ssl=ssl_context,
            subprotocols=[SUBPROTOCOL],
            open_timeout=self._config.timeout,
            close_timeout=5,
        )

        await self._send({
            "type": "connection_init",
            "payload": {"Authorization": f"Bearer {self._config.token}"},
        })
        await asyncio.wait_for(
            self._wait_for_ack(),
            timeout=self._ws_config.ack_timeout,
        )
        await self._send({
            "id": self._operation_id,
            "type": "subscribe",
            "payload": {"query": graphql.ON_UPDATE_SUBMISSION, "variables": {}},
        })

        self._connected = True
        logger.info("Subscription for %s connected", self._record_id)

    async def _wait_for_ack(self) -> None:
        """Read frames until the server acknowledges the connection."""
        while self._ws:
            message = await self._ws.recv()
            if isinstance(message, bytes):
                message = message.decode("utf-8")
            data = json.loads(message)
            msg_type = data.get("type")
            if msg_type == "connection_ack":
                return
            if msg_type == "ping":
                await self._send({"type": "pong"})
                continue
            raise SubscriptionHandshakeError(f"Unexpected frame before ack: {msg_type}")
        raise SubscriptionHandshakeError("Connection closed before ack")

    async def _listen_for_messages(self) -> None:
        """Listen for incoming frames until the socket closes."""
        while self._should_run and self._ws:
            try:
                message = await self._ws.recv()
            except websockets.ConnectionClosed:
                logger.info("Subscription for %s closed by server", self._record_id)
                break
            if isinstance(message, bytes):
                message = message.decode("utf-8")
            await self._handle_message(message)

    async def _handle_message(self, message: str) -> None:
        """Handle one frame from the server.

        Supported frame types:
        - next: a snapshot {"type": "next", "payload": {"data": {"onUpdateSubmission": {...}}}}
        - error: subscription-level error, logged
        - ping: answered with pong
        - complete: the server ended the operation; triggers a reconnect

        Args:
            message: Raw message string.
        """
        try:
            data = json.loads(message)
        except json.JSONDecodeError:
            logger.warning("Invalid message received: %s", message[:100])
            return

        if not isinstance(data, dict):
            logger.warning("Invalid message received: %s", message[:100])
            return

        msg_type = data.get("type")

        if msg_type == "next":
            self._handle_snapshot(data.get("payload"))
        elif msg_type == "error":
            logger.warning(
                "Subscription for %s received error: %s",
                self._record_id,
                data.get("payload"),
            )
        elif msg_type == "ping":
            await self._send({"type": "pong"})
        elif msg_type == "complete":
            logger.warning("Subscription for %s completed by server", self._record_id)
            await self._close_connection()

        # Ignore other frame types (pong, keep-alive)

    def _handle_snapshot(self, payload: Any) -> None:
        """Decode a ``next`` payload and queue the record if it is ours.

        Args:
            payload: The ``payload`` member of a ``next`` frame.
        """
        if not isinstance(payload, dict):
            logger.warning("Invalid snapshot payload: %s", payload)
            return
        if payload.get("errors"):
            logger.warning(
                "Snapshot for %s carried errors: %s",
                self._record_id,
                payload["errors"],
            )

        node = (payload.get("data") or {}).get("onUpdateSubmission")
        if not isinstance(node, dict):
            logger.warning("Snapshot without submission data for %s", self._record_id)
            return
        if node.get("id") != self._record_id:
            return

        try:
            record = Record.from_payload(node)
        except MalformedRecordError as e:
            logger.warning("Dropped malformed snapshot for %s: %s", self._record_id, e)
            return

        self._queue.put_nowait(record)
        logger.debug("Queued snapshot for %s", self._record_id)

    async def _send(self, message: dict[str, Any]) -> None:
        """Send a JSON frame."""
        if self._ws:
            await self._ws.send(json.dumps(message))

    async def _close_connection(self) -> None:
        """Close the WebSocket connection."""
        if self._ws:
            with contextlib.suppress(WebSocketException):
                await self._ws.close()
            self._ws = None
        self._connected = False
