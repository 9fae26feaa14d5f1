#!/usr/bin/env python3
"""
Test the MCP tool layer.

Tools are registered on a recording stand-in for FastMCP so they can be
called directly as plain functions.
"""

import subprocess
import sys
import tempfile
from concurrent.futures import Future
from pathlib import Path
from unittest.mock import patch

sys.path.insert(0, str(Path(__file__).parent))

from gitty.errors import SyncSpawnError
from gitty.models import (
    Credentials, GitResult, LogEntry, SyncError, SyncErrorCategory, SyncResult, SyncSuccess
)
from gitty.repository import Repository
from gitty.server import register_tools, sync_response, to_serializable


class RecordingServer:
    """Collects functions registered with ``@server.tool()``."""

    def __init__(self):
        self.tools = {}

    def tool(self):
        def decorator(func):
            self.tools[func.__name__] = func
            return func
        return decorator


def create_repository(temp_path: Path) -> Repository:
    subprocess.run(["git", "init"], cwd=temp_path, capture_output=True, check=True)
    subprocess.run(["git", "config", "user.name", "Test User"], cwd=temp_path, capture_output=True, check=True)
    subprocess.run(["git", "config", "user.email", "test@example.com"], cwd=temp_path, capture_output=True, check=True)
    return Repository(temp_path)


def completed(result: SyncResult) -> Future:
    future = Future()
    future.set_result(result)
    return future


def test_to_serializable():
    print("Testing serialization")
    print("-" * 40)

    error = SyncError(message="denied", category=SyncErrorCategory.AUTHENTICATION, raw="fatal: denied")
    assert to_serializable(error) == {
        "message": "denied", "category": "authentication", "raw": "fatal: denied"
    }
    assert to_serializable([LogEntry("abc", "A <a@x>", "today", "msg")]) == [
        {"commit": "abc", "author": "A <a@x>", "date": "today", "message": "msg"}
    ]
    assert to_serializable(Credentials("alice", "s3cret")) == {"user": "alice"}
    assert to_serializable({"origin": "url"}) == {"origin": "url"}

    print("  ✓ dataclasses and enums flattened, hidden fields dropped")


def test_sync_response():
    repository = Repository(tempfile.gettempdir())

    ok = sync_response(repository, "push", SyncResult(success=SyncSuccess(text="Everything up-to-date", up_to_date=True),
                                                      exit_status=0))
    assert ok["success"] is True
    assert ok["output"]["up_to_date"] is True

    failed = sync_response(repository, "push", SyncResult(
        error=SyncError(message="Authentication failed", category=SyncErrorCategory.AUTHENTICATION, raw=""),
        exit_status=128,
    ))
    assert failed["error_code"] == "SYNC_AUTHENTICATION"
    assert failed["context"]["exit_status"] == 128
    assert failed["output"] is None


def test_tools_round_trip():
    print("\nTesting registered tools")
    print("-" * 40)

    with tempfile.TemporaryDirectory() as temp_dir:
        repository = create_repository(Path(temp_dir))
        server = RecordingServer()
        register_tools(server, repository)

        assert set(server.tools) == {
            "status", "log", "branches", "tags", "remotes", "describe", "commit", "push", "pull"
        }

        (repository.path / "a.txt").write_text("a\n")
        status = server.tools["status"]()
        assert status["success"] is True
        assert status["data"]["untracked"] == ["a.txt"]

        committed = server.tools["commit"]("First", ["a.txt"])
        assert committed["success"] is True
        assert committed["data"]["message"] == "First"

        nothing = server.tools["commit"]("Again")
        assert nothing["error_code"] == "GIT_NOTHING_TO_COMMIT"

        log = server.tools["log"]()
        assert [entry["message"] for entry in log["data"]] == ["First"]

        missing = server.tools["log"]("no-such-branch")
        assert missing["error_code"] == "GIT_COMMAND_FAILED"

        assert server.tools["remotes"]()["data"] == {}

    print("  ✓ tools return parsed data or error responses")


def test_push_tool_waits_for_sync():
    with tempfile.TemporaryDirectory() as temp_dir:
        repository = create_repository(Path(temp_dir))
        server = RecordingServer()
        register_tools(server, repository)

        result = SyncResult(success=SyncSuccess(text="Everything up-to-date", up_to_date=True), exit_status=0)
        with patch.object(Repository, "push", return_value=completed(result)) as push:
            response = server.tools["push"]("origin", "main", None, "alice", "s3cret")

        remote, branch, flags, credentials = push.call_args.args
        assert (remote, branch, flags) == ("origin", "main", [])
        assert credentials == Credentials("alice", "s3cret")
        assert response["success"] is True

        with patch.object(Repository, "pull", side_effect=SyncSpawnError("no git")):
            response = server.tools["pull"]("origin", "main")
        assert response["error_code"] == "SYNC_SPAWN_FAILED"


def run_all_tests():
    """Run all server tests."""
    print("Server Test Suite")
    print("=" * 50)

    tests = [
        test_to_serializable,
        test_sync_response,
        test_tools_round_trip,
        test_push_tool_waits_for_sync,
    ]

    passed = 0
    failed = 0
    for test in tests:
        try:
            test()
            passed += 1
        except Exception as e:
            failed += 1
            print(f"  ✗ {test.__name__} failed with exception: {e}")

    print("\n" + "=" * 50)
    print(f"Test Results: {passed} passed, {failed} failed")
    return failed == 0


if __name__ == "__main__":
    success = run_all_tests()
    sys.exit(0 if success else 1)
