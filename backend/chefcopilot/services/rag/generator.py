"""
Answer Generator for Catalog Chat

This module calls the Claude API with the assembled prompt materials:
- Catalog-only system prompt (Spanish, never invent)
- Bounded conversation history
- Final user message carrying the catalog context

Generation failures are raised as GenerationError: without a generated
answer there is nothing to return to the user.
"""

import logging
from typing import Dict, List, Optional

from anthropic import AsyncAnthropic
from pydantic import BaseModel

from chefcopilot.core.config import settings
from chefcopilot.core.exceptions import ConfigurationError, GenerationError
from chefcopilot.services.rag.context import FALLBACK_ANSWER, PromptMaterials

logger = logging.getLogger(__name__)


SYSTEM_PROMPT = """Eres ChefCopilot, un asistente experto en cocina profesional y productos de cocina.

REGLAS ESTRICTAS:
1. SOLO puedes responder usando la información proporcionada en el contexto del catálogo.
2. NUNCA inventes información, precios, características o productos que no estén en el contexto.
3. NUNCA busques información en internet o fuera de la base de datos.
4. Si no encuentras información en el contexto, di claramente: "No encontré información sobre [tema] en nuestro catálogo actual."
5. Si el usuario pregunta sobre un producto específico y no está en el contexto, sugiere que revise el catálogo completo o reformule la búsqueda.

Responde en español de forma clara y útil.
Si hay información de productos en el contexto, preséntalos de forma organizada con sus características exactas.
Si no hay productos relevantes, sé honesto y di que no encontraste información en el catálogo."""


class GeneratedAnswer(BaseModel):
    """Text of one completion plus usage accounting."""

    text: str
    model: str
    tokens_used: int = 0


class AnswerGenerator:
    """
    Answer generator using Claude API.

    Usage:
    ------
    generator = AnswerGenerator(api_key=settings.ANTHROPIC_API_KEY)
    answer = await generator.generate(materials)
    print(answer.text)
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
        system_prompt: str = SYSTEM_PROMPT,
        client: Optional[AsyncAnthropic] = None
    ):
        """
        Initialize the generator.

        Args:
            api_key: Anthropic API key (defaults to settings.ANTHROPIC_API_KEY)
            model: Claude model to use (default from settings)
            max_tokens: Maximum tokens in response (default 800)
            temperature: Sampling temperature 0-1 (default 0.7)
            system_prompt: System instruction sent with every request
            client: Pre-built client (tests)

        Raises:
            ConfigurationError: If no API key is available
        """
        self.api_key = api_key or settings.ANTHROPIC_API_KEY
        self.model = model or settings.ANTHROPIC_MODEL
        self.max_tokens = max_tokens or settings.ANTHROPIC_MAX_TOKENS
        self.temperature = temperature if temperature is not None else settings.ANTHROPIC_TEMPERATURE
        self.system_prompt = system_prompt

        if not self.api_key and client is None:
            raise ConfigurationError("Anthropic API key is required. Set ANTHROPIC_API_KEY in environment.")

        self.client = client or AsyncAnthropic(api_key=self.api_key)

        logger.info(f"AnswerGenerator initialized with model={self.model}, max_tokens={self.max_tokens}")

    async def generate(self, materials: PromptMaterials) -> GeneratedAnswer:
        """
        Generate an answer.

        Args:
            materials: Output of ContextAssembler.build_context()

        Returns:
            GeneratedAnswer; an empty completion yields the fallback apology

        Raises:
            GenerationError: If the API call fails
        """
        messages = self._build_messages(materials)

        logger.info(
            f"Generating answer for query: '{materials.query[:50]}' "
            f"with {len(messages) - 1} history turn(s)"
        )

        try:
            response = await self.client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                temperature=self.temperature,
                system=self.system_prompt,
                messages=messages
            )
        except Exception as e:
            logger.error(f"Error generating response: {e}")
            raise GenerationError(f"Answer generation failed: {e}") from e

        text = "".join(
            block.text for block in response.content or []
            if getattr(block, "type", "text") == "text"
        ).strip()

        if not text:
            logger.warning("Empty completion, using fallback answer")
            text = FALLBACK_ANSWER

        usage = getattr(response, "usage", None)
        tokens_used = (usage.input_tokens + usage.output_tokens) if usage else 0

        logger.info(f"Generated response: {len(text)} chars, {tokens_used} tokens")

        return GeneratedAnswer(text=text, model=self.model, tokens_used=tokens_used)

    def _build_messages(self, materials: PromptMaterials) -> List[Dict[str, str]]:
        """History turns with text, then the context-bearing user message."""
        history = [turn for turn in materials.history if turn.get("content", "").strip()]

        # The Messages API expects the conversation to open with a user turn
        while history and history[0]["role"] != "user":
            history.pop(0)

        return history + [{"role": "user", "content": materials.user_message}]


# ========================================
# Global Instance Management
# ========================================

_generator: Optional[AnswerGenerator] = None


def get_generator() -> AnswerGenerator:
    """
    Get or create the global generator instance.

    Raises:
        ConfigurationError: If ANTHROPIC_API_KEY is not configured
    """
    global _generator

    if _generator is None:
        _generator = AnswerGenerator()
        logger.info("Created global AnswerGenerator instance")

    return _generator
