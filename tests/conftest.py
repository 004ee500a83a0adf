"""
Name: Pytest Configuration and Shared Fixtures

Responsibilities:
  - Configure the test environment (no .env, fake providers)
  - Provide scripted text-generation backends and a recording sleeper
  - Provide BackendReply builders

Collaborators:
  - pytest: Test framework
  - readaloud.domain: entities and protocols

Notes:
  - Fixtures are auto-discovered by pytest
  - Every fixture is function-scoped (per-test isolation)
"""

import json
import os
from collections import deque
from typing import Any, Iterable, Optional, Union

import pytest

os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("FAKE_LLM", "true")
os.environ.setdefault("FAKE_SPEECH", "true")

from readaloud.crosscutting import config as app_config  # noqa: E402

app_config.Settings.model_config["env_file"] = None

from readaloud.domain.entities import BackendReply, GenerationRequest  # noqa: E402


def pytest_configure(config) -> None:
    config.addinivalue_line(
        "markers", "unit: Unit tests (fast, no external dependencies)"
    )


# ============================================================================
# Reply builders
# ============================================================================


def chat_reply(content: Any, status_code: int = 200) -> BackendReply:
    """Chat-completions shaped reply with `content` as the first choice."""
    body = {"choices": [{"message": {"role": "assistant", "content": content}}]}
    return BackendReply(status_code=status_code, body=json.dumps(body))


def error_reply(status_code: int, code: Optional[str] = None, **extra: Any) -> BackendReply:
    error: dict[str, Any] = {"message": "provider error", **extra}
    if code is not None:
        error["code"] = code
    return BackendReply(status_code=status_code, body=json.dumps({"error": error}))


@pytest.fixture
def reply():
    """Expose the builders to tests without importing conftest."""

    class _Replies:
        chat = staticmethod(chat_reply)
        error = staticmethod(error_reply)

    return _Replies


# ============================================================================
# Fake collaborators
# ============================================================================


class ScriptedBackend:
    """
    TextGenerationBackend that returns queued replies in order.

    A queued exception is raised instead of returned. When the script runs
    out, the last item is repeated.
    """

    name = "scripted"

    def __init__(self, script: Iterable[Union[BackendReply, Exception]]):
        self._script = deque(script)
        self._last: Optional[Union[BackendReply, Exception]] = None
        self.requests: list[GenerationRequest] = []

    async def send(self, request: GenerationRequest) -> BackendReply:
        self.requests.append(request)
        item = self._script.popleft() if self._script else self._last
        self._last = item
        if isinstance(item, Exception):
            raise item
        assert item is not None, "ScriptedBackend called with an empty script"
        return item


class EchoBackend:
    """Answers every call with a label derived from the request."""

    name = "echo"

    def __init__(self) -> None:
        self.requests: list[GenerationRequest] = []

    async def send(self, request: GenerationRequest) -> BackendReply:
        self.requests.append(request)
        return chat_reply(f"out-{request.chunk_index}")


class RecordingSleeper:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def sleeper() -> RecordingSleeper:
    return RecordingSleeper()


@pytest.fixture
def scripted_backend():
    """Factory: scripted_backend([reply, reply, exc, ...])."""
    return ScriptedBackend


@pytest.fixture
def echo_backend() -> EchoBackend:
    return EchoBackend()
