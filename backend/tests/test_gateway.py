"""
Unit tests for the completion gateway.
Tests the remote path and every fallback reason.
"""

import asyncio
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from larun.core import fallback
from larun.core.gateway import (
    MAX_TOKENS, SYSTEM_PROMPT, TEMPERATURE,
    CompletionGateway, FallbackUsed, RemoteSuccess,
)
from larun.llm.base import LLMResponse
from larun.models import Message, Role


def make_provider(**kwargs):
    provider = MagicMock()
    provider.name = "openai"
    provider.chat_completion = AsyncMock(**kwargs)
    return provider


def make_history(count):
    created = datetime(2024, 6, 15, tzinfo=timezone.utc)
    return [
        Message(
            id=str(i),
            role=Role.USER if i % 2 == 0 else Role.ASSISTANT,
            content=f"message {i}",
            created_at=created,
        )
        for i in range(count)
    ]


class TestFallbackPaths:

    @pytest.mark.asyncio
    async def test_no_credentials(self):
        gateway = CompletionGateway(provider=None)
        result = await gateway.complete("Search TIC 123456 for transits")

        assert isinstance(result, FallbackUsed)
        assert result.reason == "no_credentials"
        assert result.source == "fallback"
        assert result.text == fallback.generate("Search TIC 123456 for transits")
        assert gateway.has_remote is False

    @pytest.mark.asyncio
    async def test_provider_error(self):
        provider = make_provider(side_effect=httpx.ConnectError("connection refused"))
        gateway = CompletionGateway(provider)

        result = await gateway.complete("hello")
        assert isinstance(result, FallbackUsed)
        assert result.reason == "upstream_error"
        assert "connection refused" in result.detail

    @pytest.mark.asyncio
    async def test_malformed_payload(self):
        provider = make_provider(side_effect=KeyError("choices"))
        result = await CompletionGateway(provider).complete("hello")
        assert result.reason == "upstream_error"

    @pytest.mark.asyncio
    async def test_http_timeout(self):
        provider = make_provider(side_effect=httpx.ReadTimeout("timed out"))
        result = await CompletionGateway(provider).complete("hello")
        assert result.reason == "timeout"

    @pytest.mark.asyncio
    async def test_slow_provider_is_cut_off(self):
        async def slow(*args, **kwargs):
            await asyncio.sleep(5)
            return LLMResponse(content="too late")

        provider = make_provider(side_effect=slow)
        gateway = CompletionGateway(provider, timeout=0.05)

        result = await gateway.complete("hello")
        assert isinstance(result, FallbackUsed)
        assert result.reason == "timeout"

    @pytest.mark.asyncio
    async def test_empty_response(self):
        provider = make_provider(return_value=LLMResponse(content="   ", model="gpt-4o-mini"))
        result = await CompletionGateway(provider).complete("hello")
        assert isinstance(result, FallbackUsed)
        assert result.reason == "empty_response"


class TestRemotePath:

    @pytest.mark.asyncio
    async def test_success(self):
        provider = make_provider(return_value=LLMResponse(content="A transit!", model="gpt-4o-mini"))
        gateway = CompletionGateway(provider)

        result = await gateway.complete("hello", conversation_id="42")
        assert isinstance(result, RemoteSuccess)
        assert result.text == "A transit!"
        assert result.model == "gpt-4o-mini"
        assert result.source == "remote"

        kwargs = provider.chat_completion.await_args.kwargs
        assert kwargs["temperature"] == TEMPERATURE
        assert kwargs["max_tokens"] == MAX_TOKENS

    @pytest.mark.asyncio
    async def test_complete_text(self):
        provider = make_provider(return_value=LLMResponse(content="ok"))
        assert await CompletionGateway(provider).complete_text("hello") == "ok"


class TestBuildMessages:

    def test_system_prompt_then_user(self):
        messages = CompletionGateway().build_messages("hi")
        assert [m.role for m in messages] == ["system", "user"]
        assert messages[0].content == SYSTEM_PROMPT
        assert messages[1].content == "hi"

    def test_history_is_trimmed_to_context_window(self):
        gateway = CompletionGateway(context_messages=4)
        messages = gateway.build_messages("latest", make_history(10))

        assert len(messages) == 6
        assert [m.content for m in messages[1:5]] == [
            "message 6", "message 7", "message 8", "message 9",
        ]
        assert messages[2].role == "assistant"
        assert messages[-1].content == "latest"

    def test_context_disabled(self):
        gateway = CompletionGateway(context_messages=0)
        assert len(gateway.build_messages("latest", make_history(3))) == 2
