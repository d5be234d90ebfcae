"""
Tests for the answer generator.

The Anthropic client is mocked; no request leaves the process.
"""

from unittest.mock import AsyncMock, Mock, patch

import pytest

from chefcopilot.core.config import settings
from chefcopilot.core.exceptions import ConfigurationError, GenerationError
from chefcopilot.services.rag.context import FALLBACK_ANSWER, PromptMaterials
from chefcopilot.services.rag.generator import SYSTEM_PROMPT, AnswerGenerator


def _response(text, input_tokens=120, output_tokens=40):
    response = Mock()
    response.content = [Mock(type="text", text=text)] if text is not None else []
    response.usage = Mock(input_tokens=input_tokens, output_tokens=output_tokens)
    return response


@pytest.fixture
def mock_client():
    client = Mock()
    client.messages = Mock()
    client.messages.create = AsyncMock(return_value=_response("Tenemos tres sartenes de inducción."))
    return client


@pytest.fixture
def materials():
    return PromptMaterials(
        query="¿sartenes de inducción?",
        context_text="Sartén Inducción 28cm",
        history=[
            {"role": "assistant", "content": "¡Hola! ¿En qué puedo ayudarte?"},
            {"role": "user", "content": "Busco menaje"},
            {"role": "assistant", "content": ""},
        ],
        user_message="Contexto del catálogo:\nSartén Inducción 28cm\n\nPregunta del usuario: ¿sartenes de inducción?",
        has_context=True,
    )


def test_requires_api_key():
    with patch.object(settings, "ANTHROPIC_API_KEY", None):
        with pytest.raises(ConfigurationError):
            AnswerGenerator()


def test_injected_client_skips_key_check(mock_client):
    with patch.object(settings, "ANTHROPIC_API_KEY", None):
        generator = AnswerGenerator(client=mock_client)

    assert generator.client is mock_client


@pytest.mark.asyncio
async def test_generate(mock_client, materials):
    generator = AnswerGenerator(client=mock_client, model="claude-test", max_tokens=300, temperature=0.2)

    answer = await generator.generate(materials)

    assert answer.text == "Tenemos tres sartenes de inducción."
    assert answer.model == "claude-test"
    assert answer.tokens_used == 160

    kwargs = mock_client.messages.create.await_args.kwargs
    assert kwargs["model"] == "claude-test"
    assert kwargs["max_tokens"] == 300
    assert kwargs["temperature"] == 0.2
    assert kwargs["system"] == SYSTEM_PROMPT


@pytest.mark.asyncio
async def test_messages_start_with_user_and_end_with_context(mock_client, materials):
    generator = AnswerGenerator(client=mock_client)

    await generator.generate(materials)

    messages = mock_client.messages.create.await_args.kwargs["messages"]
    assert messages == [
        {"role": "user", "content": "Busco menaje"},
        {"role": "user", "content": materials.user_message},
    ]


@pytest.mark.asyncio
async def test_empty_completion_uses_fallback(mock_client, materials):
    mock_client.messages.create = AsyncMock(return_value=_response(None))

    answer = await AnswerGenerator(client=mock_client).generate(materials)

    assert answer.text == FALLBACK_ANSWER


@pytest.mark.asyncio
async def test_api_failure_raises_generation_error(mock_client, materials):
    mock_client.messages.create = AsyncMock(side_effect=RuntimeError("overloaded"))

    with pytest.raises(GenerationError):
        await AnswerGenerator(client=mock_client).generate(materials)
