"""Tests for prompt assembly and LLMRunner."""

import json

import pytest
from pydantic_ai.models.test import TestModel as StubModel

from app.config import Settings
from app.schemas.messaging import Platform
from app.schemas.conversation import Message, MessageDirection
from app.schemas.settings import Product, RuntimeConfig
from app.workers.llm import (
    LLMRunner,
    build_system_prompt,
    format_catalog,
    format_custom_instruction,
    role_for,
    split_prompt,
)


def _config(**overrides) -> RuntimeConfig:
    base = {
        "graph_api_version": "v24.0",
        "ai_api_base": "https://ai.test/v1",
        "ai_model": "gemini-3-flash",
        "products": [Product(id="101", name="Wooden Watch", price=2499, description="Sandalwood.")],
    }
    base.update(overrides)
    return RuntimeConfig(**base)


def _msg(mid, direction, text):
    return Message(id=mid, direction=direction, text=text)


def test_role_mapping():
    assert role_for(_msg("1", MessageDirection.INCOMING, "hi")) == "user"
    assert role_for(_msg("2", MessageDirection.OUTGOING, "hello")) == "assistant"


def test_system_prompt_contains_persona_catalog_and_cap():
    prompt = build_system_prompt(Platform.WHATSAPP, _config(), 300)
    assert "Alex" in prompt
    assert "WhatsApp" in prompt
    assert "Wooden Watch (ID: 101): 2499" in prompt
    assert "300 characters" in prompt
    assert "ADDITIONAL INSTRUCTIONS" not in prompt


def test_out_of_stock_products_are_flagged():
    catalog = format_catalog([Product(id="1", name="Mug", price=499, in_stock=False)])
    assert "[OUT OF STOCK]" in catalog


def test_custom_instruction_json_array_renders_active_items():
    instruction = json.dumps(
        [
            {"label": "shipping", "content": "Free shipping over 999.", "isActive": True},
            {"label": "sale", "content": "Old sale.", "isActive": False},
        ]
    )
    rendered = format_custom_instruction(instruction)
    assert rendered == "[SHIPPING]: Free shipping over 999."

    prompt = build_system_prompt(Platform.INSTAGRAM, _config(ai_instruction=instruction), 300)
    assert prompt.endswith("ADDITIONAL INSTRUCTIONS:\n[SHIPPING]: Free shipping over 999.")


def test_custom_instruction_plain_text():
    assert format_custom_instruction("  Always greet in Hindi.  ") == "Always greet in Hindi."
    assert format_custom_instruction(None) == ""


def test_split_prompt_uses_latest_incoming():
    window = [
        _msg("1", MessageDirection.INCOMING, "hi"),
        _msg("2", MessageDirection.OUTGOING, "hello!"),
        _msg("3", MessageDirection.INCOMING, "price?"),
    ]
    prior, prompt = split_prompt(window)
    assert prompt == "price?"
    assert [m.id for m in prior] == ["1", "2"]


@pytest.mark.asyncio
async def test_runner_reply_with_test_model():
    runner = LLMRunner("gemini-3-flash", model=StubModel(custom_output_text="Sure thing!"))
    reply = await runner.reply(
        [_msg("1", MessageDirection.INCOMING, "Do you have mugs?")], "You are Alex."
    )
    assert reply == "Sure thing!"


@pytest.mark.asyncio
async def test_runner_analyze_with_test_model():
    runner = LLMRunner("gemini-3-flash", model=StubModel(custom_output_text="Intent: purchase"))
    analysis = await runner.analyze([_msg("1", MessageDirection.INCOMING, "I want a watch")])
    assert analysis == "Intent: purchase"


def test_settings_defaults_have_no_secrets(monkeypatch):
    for name in ("WEBHOOK_VERIFY_TOKEN", "PAGE_ACCESS_TOKEN", "AI_API_KEY"):
        monkeypatch.delenv(name, raising=False)
    settings = Settings()
    assert settings.webhook_verify_token is None
    assert settings.page_access_token is None
    assert settings.ai_api_key is None
    assert settings.ai_context_window == 5
    assert settings.event_log_capacity == 50
