"""
STDIO Transport — newline-delimited JSON-RPC over a duplex byte stream

Reads from stdin, writes to stdout (or injected streams).
NEVER pollutes stdout with logs.
Malformed frames raise ProtocolError; channel failures end the stream.
"""

import sys
import json
import asyncio
from typing import Any, BinaryIO, Dict, Optional

from allergy_mcp.server.logger import get_logger
from allergy_mcp.server.protocol import ProtocolError, PARSE_ERROR

log = get_logger("transport")

MAX_FRAME_BYTES = 2**20


class ChannelError(Exception):
    """The underlying byte stream failed; the connection cannot continue."""


class StdioTransport:
    """One connection: a frame reader plus a flushed frame writer."""

    def __init__(
        self,
        reader: Optional[asyncio.StreamReader] = None,
        writer: Optional[BinaryIO] = None,
    ):
        self._reader = reader
        self._stdout = writer
        self._pipe: Optional[asyncio.BaseTransport] = None
        self.running = False

    async def start(self):
        """Attach to process stdin/stdout unless streams were injected."""
        if self._reader is None:
            loop = asyncio.get_running_loop()
            self._reader = asyncio.StreamReader(limit=MAX_FRAME_BYTES)
            protocol = asyncio.StreamReaderProtocol(self._reader)
            self._pipe, _ = await loop.connect_read_pipe(lambda: protocol, sys.stdin.buffer)

        if self._stdout is None:
            self._stdout = sys.stdout.buffer

        self.running = True
        log.info("Transport initialized")

    async def read_message(self) -> Optional[Dict[str, Any]]:
        """
        Read one JSON-RPC message.
        Returns the parsed message, or None on EOF / channel failure.
        """
        if not self._reader:
            raise RuntimeError("Transport not started")

        while True:
            try:
                raw_bytes = await self._reader.readline()
            except asyncio.CancelledError:
                raise
            except ValueError as exc:
                # readline() drops the oversized line before raising
                raise ProtocolError(PARSE_ERROR, f"Frame too large: {exc}")
            except Exception as exc:
                log.error(f"Channel read error: {exc}", exc_info=True)
                return None

            if not raw_bytes:
                return None
            if raw_bytes.strip():
                break

        try:
            return json.loads(raw_bytes)
        except (ValueError, RecursionError) as exc:
            raise ProtocolError(PARSE_ERROR, f"JSON parse error: {exc}")

    async def write_message(self, message: Dict[str, Any]):
        """Write a JSON-RPC message and flush it."""
        if self._stdout is None:
            raise RuntimeError("Transport not started")

        raw_text = json.dumps(message, separators=(",", ":"), default=str) + "\n"
        try:
            self._stdout.write(raw_text.encode("utf-8"))
            self._stdout.flush()
        except (OSError, ValueError) as exc:
            raise ChannelError(f"Channel write failed: {exc}") from exc

    async def shutdown(self):
        """Flush pending output, then release the channel."""
        if not self.running:
            return
        self.running = False

        if self._stdout is not None:
            try:
                self._stdout.flush()
            except (OSError, ValueError) as exc:
                log.error(f"Flush on shutdown failed: {exc}")

        if self._pipe is not None:
            self._pipe.close()
            self._pipe = None
        elif self._reader is not None and not self._reader.at_eof():
            self._reader.feed_eof()

        log.info("Transport closed")
