"""Test utilities for ACP protocol tests."""

from __future__ import annotations

import asyncio
import json
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any


@dataclass
class ACPTestClient:
    """Test client for sending JSON-RPC messages to the agent.

    Responses are read inline. Notifications seen along the way are kept,
    and responses to other requests are parked until asked for.
    """

    reader: asyncio.StreamReader
    writer: asyncio.StreamWriter
    _next_id: int = field(default=0, init=False)
    _notifications: list[dict] = field(default_factory=list, init=False)
    _responses: dict[int | str, dict] = field(default_factory=dict, init=False)
    _read_lock: asyncio.Lock = field(default_factory=asyncio.Lock, init=False)

    async def _write_raw(self, msg: dict) -> None:
        """Write raw message to agent."""
        data = json.dumps(msg, separators=(",", ":"))
        self.writer.write(f"{data}\n".encode())
        await self.writer.drain()

    async def _read_message(self, deadline: float) -> dict[str, Any] | None:
        """Read one message, answering agent requests. None for skipped lines."""
        remaining = deadline - asyncio.get_running_loop().time()
        if remaining <= 0:
            raise TimeoutError("Timeout waiting for agent")

        try:
            line = await asyncio.wait_for(self.reader.readline(), timeout=remaining)
        except asyncio.TimeoutError:
            raise TimeoutError("Timeout waiting for agent") from None

        if not line:
            raise ConnectionError("Agent closed connection")

        try:
            msg = json.loads(line.decode())
        except json.JSONDecodeError:
            return None

        if "method" in msg and "id" not in msg:
            self._notifications.append(msg)
            return msg

        # The agent never asks the client anything, but answer just in case
        if "method" in msg and "id" in msg:
            await self._write_raw({"jsonrpc": "2.0", "id": msg["id"], "result": {}})
            return None

        self._responses[msg.get("id")] = msg
        return msg

    async def wait_response(self, request_id: int | str, timeout: float = 10.0) -> dict[str, Any]:
        """Read messages until the response for ``request_id`` arrives."""
        deadline = asyncio.get_running_loop().time() + timeout
        async with self._read_lock:
            while request_id not in self._responses:
                await self._read_message(deadline)
            return self._responses.pop(request_id)

    async def wait_notification(
        self,
        predicate: Callable[[dict], bool],
        timeout: float = 10.0,
    ) -> dict[str, Any]:
        """Read messages until a notification matching ``predicate`` arrives."""
        for msg in self._notifications:
            if predicate(msg):
                return msg

        deadline = asyncio.get_running_loop().time() + timeout
        async with self._read_lock:
            while True:
                msg = await self._read_message(deadline)
                if msg is not None and "method" in msg and predicate(msg):
                    return msg

    async def start_request(
        self,
        method: str,
        params: dict[str, Any] | None = None,
        *,
        request_id: int | str | None = None,
    ) -> int | str:
        """Send a JSON-RPC request without waiting. Returns its id."""
        if request_id is None:
            request_id = self._next_id
            self._next_id += 1

        request: dict[str, Any] = {
            "jsonrpc": "2.0",
            "id": request_id,
            "method": method,
        }
        if params is not None:
            request["params"] = params

        await self._write_raw(request)
        return request_id

    async def send_request(
        self,
        method: str,
        params: dict[str, Any] | None = None,
        *,
        request_id: int | str | None = None,
        timeout: float = 10.0,
    ) -> dict[str, Any]:
        """Send a JSON-RPC request and wait for response.

        Args:
            method: RPC method name
            params: Optional parameters
            request_id: Optional custom request ID
            timeout: Response timeout in seconds

        Returns:
            Full JSON-RPC response dict
        """
        request_id = await self.start_request(method, params, request_id=request_id)
        return await self.wait_response(request_id, timeout)

    async def send_notification(
        self,
        method: str,
        params: dict[str, Any] | None = None,
    ) -> None:
        """Send a JSON-RPC notification (no response expected)."""
        notification: dict[str, Any] = {
            "jsonrpc": "2.0",
            "method": method,
        }
        if params is not None:
            notification["params"] = params

        await self._write_raw(notification)

    async def send_raw(self, data: str) -> None:
        """Send raw data (for testing parse errors)."""
        self.writer.write(f"{data}\n".encode())
        await self.writer.drain()

    def get_notifications(self) -> list[dict]:
        """Get list of received notifications."""
        return list(self._notifications)

    def session_updates(self, session_id: str) -> list[dict]:
        """The ``update`` payloads of session/update notifications for a session."""
        return [
            n["params"]["update"]
            for n in self._notifications
            if n.get("method") == "session/update"
            and n.get("params", {}).get("sessionId") == session_id
        ]

    def clear_notifications(self) -> None:
        """Clear notification buffer."""
        self._notifications.clear()


async def initialize_agent(client: ACPTestClient) -> dict[str, Any]:
    """Send initialize request with standard client info.

    Returns:
        Full JSON-RPC response dict
    """
    return await client.send_request(
        "initialize",
        {
            "protocolVersion": 1,
            "clientCapabilities": {
                "fs": {"readTextFile": True, "writeTextFile": True},
                "terminal": True,
            },
            "clientInfo": {
                "name": "pytest",
                "title": "ACP Protocol Tests",
                "version": "1.0.0",
            },
        },
    )


async def create_session(client: ACPTestClient, cwd: str) -> str:
    """Open a session in ``cwd`` and return its id."""
    response = await client.send_request(
        "session/new",
        {"cwd": cwd, "mcpServers": []},
    )
    assert "result" in response, f"session/new failed: {response}"
    return response["result"]["sessionId"]


async def send_prompt(
    client: ACPTestClient,
    session_id: str,
    text: str,
    timeout: float = 15.0,
) -> dict[str, Any]:
    """Send a one-block text prompt and wait for the response."""
    return await client.send_request(
        "session/prompt",
        {"sessionId": session_id, "prompt": [{"type": "text", "text": text}]},
        timeout=timeout,
    )


def message_texts(updates: list[dict]) -> list[str]:
    """Text of the agent_message_chunk updates, in order."""
    return [
        u["content"]["text"]
        for u in updates
        if u.get("sessionUpdate") == "agent_message_chunk"
    ]
