"""
Allergy MCP Server — Main Orchestrator

Ties together:
  Transport -> Protocol -> Router -> Dispatcher -> tool handlers

Flow:
  1. Transport reads one newline-delimited frame
  2. Protocol validates JSON-RPC 2.0
  3. Router answers discovery itself, hands tools/call to the Dispatcher
  4. Transport writes the response, tagged with the request id

Messages on a connection are handled strictly one after another, so
responses leave in the order requests arrived.
"""

import asyncio
import signal
from typing import Any, Dict, Optional

from allergy_mcp.config import Config
from allergy_mcp.server.dispatcher import Dispatcher
from allergy_mcp.server.logger import get_logger
from allergy_mcp.server.transport import ChannelError, StdioTransport
from allergy_mcp.server.protocol import (
    validate_message,
    make_response,
    make_error,
    ProtocolError,
    INTERNAL_ERROR,
)
from allergy_mcp.server.router import Router

log = get_logger("server")


class AllergyMCPServer:
    """
    Main server orchestrator.

    Usage:
        store = AllergyDB()
        await store.initialize()
        server = AllergyMCPServer(build_dispatcher(store), store=store)
        await server.run()
    """

    def __init__(
        self,
        dispatcher: Dispatcher,
        transport: Optional[StdioTransport] = None,
        store: Any = None,
    ):
        self._dispatcher = dispatcher
        self._transport = transport or StdioTransport()
        self._router = Router(dispatcher)
        self._store = store
        self._running = False
        self._stopped = False

    @property
    def router(self) -> Router:
        return self._router

    @property
    def running(self) -> bool:
        return self._running

    # -- main loop --

    async def run(self, install_signal_handlers: bool = True):
        """Start the server and process messages until EOF or signal."""
        log.info(f"Starting {Config.SERVER_NAME} v{Config.SERVER_VERSION}")

        await self._transport.start()

        if install_signal_handlers:
            loop = asyncio.get_running_loop()
            for sig in (signal.SIGINT, signal.SIGTERM):
                try:
                    loop.add_signal_handler(sig, lambda: asyncio.create_task(self.shutdown()))
                except (NotImplementedError, RuntimeError):
                    pass

        self._running = True
        log.info(f"Server ready — tools={self._router.tool_count}")

        try:
            while self._running:
                try:
                    msg = await self._transport.read_message()
                except ProtocolError as exc:
                    log.error(f"Protocol error: {exc.message} (code={exc.code})")
                    continue

                if msg is None:
                    log.info("EOF on stdin — shutting down")
                    break

                await self._handle_message(msg)

        except asyncio.CancelledError:
            log.info("Server cancelled")
        except Exception as exc:
            log.error(f"Server error: {exc}", exc_info=True)
        finally:
            await self.shutdown()

    async def _handle_message(self, msg: Dict[str, Any]):
        """Process a single JSON-RPC message through the full pipeline."""
        request_id = msg.get("id") if isinstance(msg, dict) else None

        try:
            msg_type = validate_message(msg)

            if msg_type in ("response", "error"):
                log.debug(f"Ignoring client {msg_type} id={request_id}")
                return

            result = await self._router.route(msg_type, msg)

            if result is None or msg_type == "notification":
                return

            await self._transport.write_message(make_response(request_id, result))

        except ProtocolError as exc:
            log.warning(f"Protocol error: {exc.message} (code={exc.code})")
            if request_id is not None:
                error_resp = make_error(request_id, exc.code, exc.message, exc.data)
                await self._transport.write_message(error_resp)

        except ChannelError:
            # nothing can be written back
            raise

        except Exception as exc:
            log.error(f"Unhandled error: {exc}", exc_info=True)
            if request_id is not None:
                error_resp = make_error(request_id, INTERNAL_ERROR, str(exc))
                await self._transport.write_message(error_resp)

    async def shutdown(self):
        """Graceful shutdown — flush and release the channel, close the store."""
        if self._stopped:
            return
        self._stopped = True
        self._running = False

        log.info("Shutting down")

        await self._transport.shutdown()
        if self._store is not None:
            await self._store.close()

        log.info("Server stopped")
