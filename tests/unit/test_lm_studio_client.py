# tests/unit/test_lm_studio_client.py
"""Unit tests for LMStudioClient."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from survey_assistant.llm.lm_studio import LMStudioClient


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _make_client(**kwargs):
    """Create LMStudioClient with openai patched out."""
    with patch("survey_assistant.llm.lm_studio.AsyncOpenAI"):
        client = LMStudioClient(**kwargs)
    return client


def _make_chunk(content):
    """Build a mock streamed ChatCompletionChunk."""
    delta = MagicMock()
    delta.content = content
    choice = MagicMock()
    choice.delta = delta
    chunk = MagicMock()
    chunk.choices = [choice]
    return chunk


def _stream(*chunks):
    async def gen():
        for chunk in chunks:
            yield chunk

    return gen()


# ---------------------------------------------------------------------------
# health_check
# ---------------------------------------------------------------------------

class TestHealthCheck:
    @pytest.mark.asyncio
    async def test_returns_true_on_200(self):
        client = _make_client()
        mock_response = MagicMock()
        mock_response.status_code = 200

        with patch("survey_assistant.llm.lm_studio.httpx.AsyncClient") as mock_http:
            mock_http.return_value.__aenter__ = AsyncMock(return_value=mock_http.return_value)
            mock_http.return_value.__aexit__ = AsyncMock(return_value=False)
            mock_http.return_value.get = AsyncMock(return_value=mock_response)
            result = await client.health_check()

        assert result is True
        mock_http.return_value.get.assert_awaited_once_with("http://localhost:1234/v1/models")

    @pytest.mark.asyncio
    async def test_returns_false_on_connection_error(self):
        client = _make_client()

        with patch("survey_assistant.llm.lm_studio.httpx.AsyncClient") as mock_http:
            mock_http.return_value.__aenter__ = AsyncMock(side_effect=ConnectionError("refused"))
            mock_http.return_value.__aexit__ = AsyncMock(return_value=False)
            result = await client.health_check()

        assert result is False

    @pytest.mark.asyncio
    async def test_returns_false_on_non_200(self):
        client = _make_client()
        mock_response = MagicMock()
        mock_response.status_code = 503

        with patch("survey_assistant.llm.lm_studio.httpx.AsyncClient") as mock_http:
            mock_http.return_value.__aenter__ = AsyncMock(return_value=mock_http.return_value)
            mock_http.return_value.__aexit__ = AsyncMock(return_value=False)
            mock_http.return_value.get = AsyncMock(return_value=mock_response)
            result = await client.health_check()

        assert result is False


# ---------------------------------------------------------------------------
# generate
# ---------------------------------------------------------------------------

class TestGenerate:
    @pytest.mark.asyncio
    async def test_accumulates_stream(self):
        client = _make_client(model="gemma")
        client._client.chat.completions.create = AsyncMock(
            return_value=_stream(_make_chunk('{"a"'), _make_chunk(None), _make_chunk(": 1}"))
        )

        result = await client.generate([{"role": "user", "content": "hi"}])

        assert result == '{"a": 1}'
        kwargs = client._client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "gemma"
        assert kwargs["stream"] is True

    @pytest.mark.asyncio
    async def test_chunk_without_choices_ignored(self):
        client = _make_client()
        empty = MagicMock()
        empty.choices = []
        client._client.chat.completions.create = AsyncMock(
            return_value=_stream(empty, _make_chunk("ok"))
        )

        assert await client.generate([{"role": "user", "content": "hi"}]) == "ok"

    @pytest.mark.asyncio
    async def test_errors_propagate(self):
        client = _make_client()
        client._client.chat.completions.create = AsyncMock(side_effect=RuntimeError("down"))

        with pytest.raises(RuntimeError):
            await client.generate([{"role": "user", "content": "hi"}])
