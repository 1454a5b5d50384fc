"""JSON-RPC framing and error handling.

Error codes used by the agent:
  -32601  Method not found
  -32602  Invalid params   (unknown session, mode or model)
  -32603  Internal error   (kiro-cli failures, in-protocol login)
"""

from __future__ import annotations

import asyncio
from pathlib import Path

from .helpers import ACPTestClient, create_session, initialize_agent

METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602


class TestJsonRpcFormat:
    """Tests for JSON-RPC 2.0 message format."""

    async def test_response_has_jsonrpc_field(self, client: ACPTestClient) -> None:
        response = await initialize_agent(client)
        assert response["jsonrpc"] == "2.0"

    async def test_response_id_matches_request(self, client: ACPTestClient) -> None:
        """Numeric and string request ids are echoed exactly."""
        for request_id in (99999, "test-request-abc-xyz"):
            response = await client.send_request(
                "initialize",
                {"protocolVersion": 1, "clientCapabilities": {}},
                request_id=request_id,
            )
            assert response.get("id") == request_id

    async def test_result_xor_error(self, initialized_client: ACPTestClient) -> None:
        """A response carries exactly one of result and error."""
        ok = await initialize_agent(initialized_client)
        assert ("result" in ok) != ("error" in ok)

        bad = await initialized_client.send_request("bad/method", {})
        assert ("result" in bad) != ("error" in bad)


class TestErrorCodes:
    """Tests for error codes."""

    async def test_method_not_found(self, initialized_client: ACPTestClient) -> None:
        response = await initialized_client.send_request("nonexistent/method", {})
        error = response["error"]
        assert error["code"] == METHOD_NOT_FOUND
        assert isinstance(error["message"], str) and error["message"]

    async def test_unknown_session(self, initialized_client: ACPTestClient) -> None:
        """An unknown session id is an invalid parameter, naming the id."""
        response = await initialized_client.send_request(
            "session/prompt",
            {"sessionId": "nonexistent-session-12345", "prompt": []},
        )
        error = response["error"]
        assert error["code"] == INVALID_PARAMS
        assert error["data"]["sessionId"] == "nonexistent-session-12345"

    async def test_wrong_param_type(self, initialized_client: ACPTestClient) -> None:
        response = await initialized_client.send_request(
            "session/prompt",
            {"sessionId": 12345, "prompt": []},
        )
        assert response["error"]["code"] == INVALID_PARAMS


class TestParseErrorRecovery:
    """The agent stays responsive after malformed input."""

    async def test_invalid_json_recovery(
        self, initialized_client: ACPTestClient, project_dir: Path
    ) -> None:
        await initialized_client.send_raw("not valid json {{{")
        await asyncio.sleep(0.1)
        assert await create_session(initialized_client, str(project_dir))

    async def test_empty_line_recovery(
        self, initialized_client: ACPTestClient, project_dir: Path
    ) -> None:
        await initialized_client.send_raw("")
        await asyncio.sleep(0.1)
        assert await create_session(initialized_client, str(project_dir))

    async def test_partial_json_recovery(
        self, initialized_client: ACPTestClient, project_dir: Path
    ) -> None:
        await initialized_client.send_raw('{"jsonrpc": "2.0", "id": 999, "method":')
        await asyncio.sleep(0.1)
        assert await create_session(initialized_client, str(project_dir))
