"""Wire-level integration tests for MCP error envelope behavior."""

from __future__ import annotations

import json
import subprocess
import sys


def _call_tool(env: dict[str, str], name: str, arguments: dict) -> dict:
    proc = subprocess.Popen(
        [sys.executable, "-m", "pagedigest.server"],
        stdin=subprocess.PIPE,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        text=True,
        env=env,
    )

    assert proc.stdin is not None
    assert proc.stdout is not None
    assert proc.stderr is not None

    messages = [
        {
            "jsonrpc": "2.0",
            "id": 1,
            "method": "initialize",
            "params": {
                "protocolVersion": "2025-11-25",
                "capabilities": {},
                "clientInfo": {"name": "pytest", "version": "0"},
            },
        },
        {"jsonrpc": "2.0", "method": "notifications/initialized"},
        {
            "jsonrpc": "2.0",
            "id": 2,
            "method": "tools/call",
            "params": {"name": name, "arguments": arguments},
        },
    ]

    for message in messages:
        proc.stdin.write(json.dumps(message) + "\n")
    proc.stdin.flush()

    tool_response: dict | None = None
    while tool_response is None:
        line = proc.stdout.readline()
        if not line:
            break
        if line.strip():
            response = json.loads(line)
            if response.get("id") == 2:
                tool_response = response

    proc.stdin.close()
    proc.stderr.read()  # Drain for clean process shutdown on all platforms
    proc.wait(timeout=10)

    assert tool_response is not None
    return tool_response


def test_invalid_input_serializes_to_structured_tool_error(
    subprocess_env: dict[str, str],
) -> None:
    """PageDigestError should be returned as structured JSON in tool result text."""
    tool_response = _call_tool(
        subprocess_env,
        "digest_page",
        {"html": "<html></html>", "url": "no-scheme-or-host"},
    )

    assert tool_response["result"]["isError"] is True

    text_payload = tool_response["result"]["content"][0]["text"]
    assert "Error executing tool" not in text_payload

    parsed = json.loads(text_payload)
    assert parsed["error"]["code"] == "INVALID_INPUT"
    assert parsed["error"]["recoverable"] is False
    assert "URL has no hostname" in parsed["error"]["message"]


def test_missing_api_key_serializes_to_structured_tool_error(
    subprocess_env: dict[str, str],
) -> None:
    selection = "A paragraph the user selected on the page, long enough to digest. " * 3
    tool_response = _call_tool(
        subprocess_env,
        "digest_page",
        {"html": "<html></html>", "url": "https://example.com/", "selection": selection},
    )

    assert tool_response["result"]["isError"] is True
    parsed = json.loads(tool_response["result"]["content"][0]["text"])
    assert parsed["error"]["code"] == "API_KEY_MISSING"
    assert parsed["error"]["suggestion"]
