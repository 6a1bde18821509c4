from __future__ import annotations

import json
from typing import Any, Iterable, List, Optional, Sequence

from pydantic_ai import Agent
from pydantic_ai.messages import (
    ModelMessage,
    ModelRequest,
    ModelResponse,
    SystemPromptPart,
    TextPart,
    UserPromptPart,
)
from pydantic_ai.models import Model
from pydantic_ai.models.openai import OpenAIChatModel
from pydantic_ai.providers.litellm import LiteLLMProvider

from app.constants.default_system_prompt import DefaultSystemPrompt
from app.infra.logging_config import get_logger
from app.schemas.messaging import Platform
from app.schemas.conversation import Message, MessageDirection
from app.schemas.settings import Product, RuntimeConfig

logger = get_logger(__name__)


def role_for(message: Message) -> str:
    """incoming → user, outgoing → assistant."""
    return "user" if message.direction == MessageDirection.INCOMING else "assistant"


def _history_to_message_list(history: Iterable[Message]) -> List[ModelMessage]:
    """Convert conversation messages to pydantic_ai ModelMessage list for message_history."""
    out: List[ModelMessage] = []
    for item in history:
        content = (item.text or "").strip()
        if not content:
            continue
        if role_for(item) == "user":
            out.append(ModelRequest(parts=[UserPromptPart(content=content)]))
        else:
            out.append(ModelResponse(parts=[TextPart(content=content)]))
    return out


def format_catalog(products: Sequence[Product]) -> str:
    if not products:
        return "(no products configured)"
    return "\n".join(
        f"- {p.name} (ID: {p.id}): {p.price:g}. {p.description}"
        + ("" if p.in_stock else " [OUT OF STOCK]")
        for p in products
    )


def format_custom_instruction(instruction: Any) -> str:
    """
    Custom instructions come either as plain text (legacy) or as a JSON array
    of {label, content, isActive}; only active items are rendered.
    """
    if not instruction:
        return ""
    items = instruction
    if isinstance(instruction, str):
        try:
            items = json.loads(instruction)
        except ValueError:
            return instruction.strip()
    if not isinstance(items, list):
        return instruction.strip() if isinstance(instruction, str) else ""
    rendered = [
        f"[{str(item.get('label', 'RULE')).upper()}]: {item.get('content', '')}"
        for item in items
        if isinstance(item, dict) and item.get("isActive", item.get("is_active"))
    ]
    return "\n\n".join(rendered)


def build_system_prompt(
    platform: Platform, config: RuntimeConfig, max_chars: int
) -> str:
    """Persona + catalog + length cap, followed by any active custom instructions."""
    prompt = DefaultSystemPrompt.CONTENT.format(
        platform="WhatsApp" if platform == Platform.WHATSAPP else "Instagram",
        catalog=format_catalog(config.products),
        max_chars=max_chars,
    ).strip()
    extra = format_custom_instruction(config.ai_instruction)
    if extra:
        prompt = f"{prompt}\n\nADDITIONAL INSTRUCTIONS:\n{extra}"
    return prompt


def split_prompt(window: Sequence[Message]) -> tuple[List[Message], str]:
    """Split a context window into (prior history, latest incoming text)."""
    for i in range(len(window) - 1, -1, -1):
        if window[i].direction == MessageDirection.INCOMING:
            return list(window[:i]), window[i].text
    return list(window), ""


class LLMRunner:
    def __init__(
        self,
        model_name: str,
        api_key: Optional[str] = None,
        api_base: Optional[str] = None,
        timeout: Optional[float] = None,
        model: Optional[Model] = None,
    ) -> None:
        if model is None:
            provider = LiteLLMProvider(api_key=api_key, api_base=api_base)
            model = OpenAIChatModel(model_name, provider=provider)
        logger.info(f"Initializing LLM runner with model {model_name}")
        self.model_name = model_name
        self._timeout = timeout
        self._agent = Agent(model)

    def _model_settings(self) -> dict[str, Any] | None:
        return {"timeout": self._timeout} if self._timeout else None

    async def reply(self, window: Sequence[Message], system_prompt: str) -> str:
        """Generate the next assistant message for a conversation window."""
        prior, prompt = split_prompt(window)
        message_history: List[ModelMessage] = [
            ModelRequest(parts=[SystemPromptPart(content=system_prompt)])
        ] + _history_to_message_list(prior)
        result = await self._agent.run(
            prompt,
            message_history=message_history,
            model_settings=self._model_settings(),
        )
        return str(result.output).strip()

    async def analyze(self, messages: Sequence[Message]) -> str:
        """Summarize intent / next best action / tone for a full conversation."""
        transcript = "\n".join(
            f"{'User' if role_for(m) == 'user' else 'Agent'}: {m.text}" for m in messages
        )
        result = await self._agent.run(
            f"Here is the conversation transcript:\n\n{transcript}",
            message_history=[
                ModelRequest(parts=[SystemPromptPart(content=DefaultSystemPrompt.ANALYSIS)])
            ],
            model_settings=self._model_settings(),
        )
        return str(result.output).strip()


def build_llm_runner(config: RuntimeConfig, timeout: Optional[float] = None) -> LLMRunner:
    logger.info(
        "LLM runner config: model=%s, api_key=%s, api_base=%s",
        config.ai_model,
        "set" if config.ai_api_key else "not set",
        config.ai_api_base or "(default)",
    )
    return LLMRunner(
        model_name=config.ai_model,
        api_key=config.ai_api_key,
        api_base=config.ai_api_base,
        timeout=timeout,
    )
