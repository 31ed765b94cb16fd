"""Tests for the server loop over an in-memory stdio transport."""

import asyncio
import io
import json

import pytest
from allergy_mcp.server.protocol import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    METHOD_NOT_FOUND,
    PARSE_ERROR,
    ProtocolError,
)
from allergy_mcp.server.server import AllergyMCPServer
from allergy_mcp.server.transport import StdioTransport


def frame(msg) -> bytes:
    if isinstance(msg, bytes):
        return msg
    return (json.dumps(msg) + "\n").encode("utf-8")


def call(request_id, name, arguments=None):
    params = {"name": name}
    if arguments is not None:
        params["arguments"] = arguments
    return {"jsonrpc": "2.0", "id": request_id, "method": "tools/call", "params": params}


async def run_session(dispatcher, *messages, store=None):
    """Feed ``messages`` to a fresh server and return the decoded replies."""
    reader = asyncio.StreamReader()
    for msg in messages:
        reader.feed_data(frame(msg))
    reader.feed_eof()

    out = io.BytesIO()
    server = AllergyMCPServer(dispatcher, transport=StdioTransport(reader, out), store=store)
    await server.run(install_signal_handlers=False)
    return [json.loads(line) for line in out.getvalue().splitlines()]


class TestHandshake:
    @pytest.mark.asyncio
    async def test_initialize_and_list(self, dispatcher):
        replies = await run_session(
            dispatcher,
            {"jsonrpc": "2.0", "id": 1, "method": "initialize", "params": {
                "protocolVersion": "2024-11-05",
                "capabilities": {},
                "clientInfo": {"name": "test-client", "version": "1.0"},
            }},
            {"jsonrpc": "2.0", "method": "notifications/initialized"},
            {"jsonrpc": "2.0", "id": 2, "method": "tools/list"},
            {"jsonrpc": "2.0", "id": 3, "method": "ping"},
        )
        assert [r["id"] for r in replies] == [1, 2, 3]
        assert replies[0]["result"]["serverInfo"]["name"] == "allergy-management-server"
        names = [t["name"] for t in replies[1]["result"]["tools"]]
        assert names == [
            "search_allergies",
            "get_allergy_info",
            "analyze_symptoms",
            "get_treatment_recommendations",
        ]
        assert replies[2]["result"] == {}

    @pytest.mark.asyncio
    async def test_catalog_stable(self, dispatcher):
        replies = await run_session(
            dispatcher,
            {"jsonrpc": "2.0", "id": 1, "method": "tools/list"},
            {"jsonrpc": "2.0", "id": 2, "method": "tools/list"},
        )
        assert replies[0]["result"] == replies[1]["result"]


class TestToolCalls:
    @pytest.mark.asyncio
    async def test_success_envelope(self, dispatcher):
        (reply,) = await run_session(dispatcher, call(7, "search_allergies", {"query": "peanut"}))
        assert reply["id"] == 7
        result = reply["result"]
        assert result["isError"] is False
        assert result["content"][0]["type"] == "text"
        assert json.loads(result["content"][0]["text"])["count"] == 1

    @pytest.mark.asyncio
    async def test_unknown_tool_is_envelope(self, dispatcher):
        (reply,) = await run_session(dispatcher, call("abc", "frobnicate", {}))
        assert reply["id"] == "abc"
        assert "error" not in reply
        assert reply["result"]["isError"] is True
        assert "Unknown tool: frobnicate" in reply["result"]["content"][0]["text"]

    @pytest.mark.asyncio
    async def test_validation_is_envelope(self, dispatcher):
        (reply,) = await run_session(dispatcher, call(1, "search_allergies"))
        assert reply["result"]["isError"] is True
        assert "query" in reply["result"]["content"][0]["text"]

    @pytest.mark.asyncio
    async def test_ordering(self, dispatcher):
        replies = await run_session(
            dispatcher,
            call(1, "get_allergy_info", {"allergyId": "alg-egg"}),
            call(2, "get_allergy_info", {"allergyId": "alg-soy"}),
            call(3, "frobnicate", {}),
            call(4, "get_allergy_info", {"allergyId": "alg-fish"}),
        )
        assert [r["id"] for r in replies] == [1, 2, 3, 4]
        assert json.loads(replies[0]["result"]["content"][0]["text"])["name"] == "Egg"
        assert json.loads(replies[3]["result"]["content"][0]["text"])["name"] == "Fish"


class TestProtocolFaults:
    @pytest.mark.asyncio
    async def test_malformed_frame_skipped(self, dispatcher):
        replies = await run_session(
            dispatcher,
            b"{not json\n",
            b"\n",
            {"jsonrpc": "2.0", "id": 2, "method": "ping"},
        )
        assert replies == [{"jsonrpc": "2.0", "id": 2, "result": {}}]

    @pytest.mark.asyncio
    async def test_unknown_method(self, dispatcher):
        (reply,) = await run_session(dispatcher, {"jsonrpc": "2.0", "id": 5, "method": "resources/list"})
        assert reply["error"]["code"] == METHOD_NOT_FOUND

    @pytest.mark.asyncio
    async def test_missing_tool_name(self, dispatcher):
        (reply,) = await run_session(
            dispatcher, {"jsonrpc": "2.0", "id": 5, "method": "tools/call", "params": {}},
        )
        assert reply["error"]["code"] == INVALID_PARAMS

    @pytest.mark.asyncio
    async def test_non_object_arguments(self, dispatcher):
        (reply,) = await run_session(dispatcher, call(5, "search_allergies", ["peanut"]))
        assert reply["error"]["code"] == INVALID_PARAMS

    @pytest.mark.asyncio
    async def test_notifications_get_no_reply(self, dispatcher):
        replies = await run_session(
            dispatcher,
            {"jsonrpc": "2.0", "method": "tools/call", "params": {"name": "frobnicate"}},
            {"jsonrpc": "2.0", "method": "notifications/cancelled", "params": {"requestId": 1}},
        )
        assert replies == []

    @pytest.mark.asyncio
    async def test_invalid_envelope_without_id(self, dispatcher):
        replies = await run_session(dispatcher, {"jsonrpc": "1.0", "method": "ping"}, [1, 2])
        assert replies == []

    @pytest.mark.asyncio
    async def test_undecodable_frames_do_not_stop_loop(self, dispatcher):
        huge_int = b'{"jsonrpc":"2.0","id":' + b"1" * 5000 + b',"method":"ping"}\n'
        deep = b"[" * 20000 + b"]" * 20000 + b"\n"
        replies = await run_session(
            dispatcher,
            huge_int,
            deep,
            b"\xff\xfe\n",
            {"jsonrpc": "2.0", "id": 2, "method": "ping"},
        )
        assert replies[-1] == {"jsonrpc": "2.0", "id": 2, "result": {}}

    @pytest.mark.asyncio
    async def test_router_value_error_gets_internal_error(self, dispatcher, monkeypatch):
        reader = asyncio.StreamReader()
        reader.feed_data(frame({"jsonrpc": "2.0", "id": 1, "method": "ping"}))
        reader.feed_data(frame({"jsonrpc": "2.0", "id": 2, "method": "ping"}))
        reader.feed_eof()
        out = io.BytesIO()
        server = AllergyMCPServer(dispatcher, transport=StdioTransport(reader, out))

        original = server.router.route
        calls = []

        async def flaky(msg_type, msg):
            calls.append(msg["id"])
            if len(calls) == 1:
                raise ValueError("bad value")
            return await original(msg_type, msg)

        monkeypatch.setattr(server.router, "route", flaky)
        await server.run(install_signal_handlers=False)

        replies = [json.loads(line) for line in out.getvalue().splitlines()]
        assert replies[0]["id"] == 1
        assert replies[0]["error"]["code"] == INTERNAL_ERROR
        assert replies[1] == {"jsonrpc": "2.0", "id": 2, "result": {}}

    @pytest.mark.asyncio
    async def test_broken_channel_stops_loop(self, dispatcher):
        class BrokenPipe(io.BytesIO):
            def write(self, data):
                raise BrokenPipeError("gone")

        reader = asyncio.StreamReader()
        reader.feed_data(frame({"jsonrpc": "2.0", "id": 1, "method": "ping"}))
        server = AllergyMCPServer(dispatcher, transport=StdioTransport(reader, BrokenPipe()))

        await asyncio.wait_for(server.run(install_signal_handlers=False), timeout=2)
        assert server.running is False


class TestLiveness:
    @pytest.mark.asyncio
    async def test_handler_fault_does_not_stop_loop(self, dispatcher, monkeypatch, store):
        async def broken(allergy_id):
            raise RuntimeError("disk on fire")

        monkeypatch.setattr(store, "get", broken)
        replies = await run_session(
            dispatcher,
            call(1, "get_allergy_info", {"allergyId": "alg-egg"}),
            call(2, "search_allergies", {"query": "egg"}),
        )
        assert replies[0]["result"]["isError"] is True
        assert replies[0]["result"]["content"][0]["text"] == "Error: disk on fire"
        assert replies[1]["result"]["isError"] is False


class TestShutdown:
    @pytest.mark.asyncio
    async def test_shutdown_closes_store_once(self, dispatcher):
        class FakeStore:
            closed = 0

            async def close(self):
                self.closed += 1

        fake = FakeStore()
        await run_session(dispatcher, {"jsonrpc": "2.0", "id": 1, "method": "ping"}, store=fake)
        assert fake.closed == 1

    @pytest.mark.asyncio
    async def test_shutdown_ends_pending_read(self, dispatcher):
        reader = asyncio.StreamReader()
        out = io.BytesIO()
        server = AllergyMCPServer(dispatcher, transport=StdioTransport(reader, out))

        task = asyncio.create_task(server.run(install_signal_handlers=False))
        reader.feed_data(frame({"jsonrpc": "2.0", "id": 1, "method": "ping"}))
        await asyncio.sleep(0.05)
        await server.shutdown()
        await asyncio.wait_for(task, timeout=2)

        assert out.getvalue() == frame({"jsonrpc": "2.0", "id": 1, "result": {}}).replace(b" ", b"")
        assert server.running is False


class TestTransport:
    @pytest.mark.asyncio
    async def test_read_before_start(self):
        with pytest.raises(RuntimeError):
            await StdioTransport().read_message()

    @pytest.mark.asyncio
    async def test_malformed_raises_parse_error(self):
        reader = asyncio.StreamReader()
        reader.feed_data(b"nope\n")
        transport = StdioTransport(reader, io.BytesIO())
        await transport.start()
        with pytest.raises(ProtocolError) as exc_info:
            await transport.read_message()
        assert exc_info.value.code == PARSE_ERROR

    @pytest.mark.asyncio
    async def test_eof(self):
        reader = asyncio.StreamReader()
        reader.feed_eof()
        transport = StdioTransport(reader, io.BytesIO())
        await transport.start()
        assert await transport.read_message() is None

    @pytest.mark.asyncio
    async def test_compact_frames(self):
        out = io.BytesIO()
        transport = StdioTransport(asyncio.StreamReader(), out)
        await transport.start()
        await transport.write_message({"a": 1, "b": [1, 2]})
        assert out.getvalue() == b'{"a":1,"b":[1,2]}\n'
