"""Tests for the normalized webhook and conversation schemas."""

from datetime import datetime, timezone

from app.schemas.messaging import InboundEvent, MessageKind, Platform, ProfileData
from app.schemas.conversation import (
    AnalyzeRequest,
    Conversation,
    Message,
    MessageDirection,
    MessageStatus,
)
from app.schemas.settings import RuntimeConfig


def test_platform_enum():
    assert Platform("instagram") is Platform.INSTAGRAM
    assert Platform.WHATSAPP.value == "whatsapp"


def test_inbound_event_minimal():
    event = InboundEvent(platform=Platform.INSTAGRAM, sender_id="123")
    assert event.kind == MessageKind.TEXT
    assert event.attachments == []
    assert event.event_id is None
    assert event.profile is None


def test_profile_display_name_prefers_name():
    assert ProfileData(name="Maya", username="maya.s").display_name == "Maya"
    assert ProfileData(username="maya.s").display_name == "maya.s"
    assert ProfileData().display_name is None


def test_conversation_serializes_camel_case():
    conversation = Conversation(
        id="c1",
        platform=Platform.INSTAGRAM,
        external_user_id="123",
        display_name="User 0123",
        avatar_url="https://a",
        messages=[
            Message(
                id="m1",
                direction=MessageDirection.OUTGOING,
                text="hi",
                created_at=datetime(2026, 1, 1, tzinfo=timezone.utc),
                is_human_override=True,
            )
        ],
    )
    dumped = conversation.model_dump(mode="json", by_alias=True)
    assert dumped["externalUserId"] == "123"
    assert dumped["aiPaused"] is False
    assert dumped["unreadCount"] == 0
    assert dumped["messages"][0]["isHumanOverride"] is True
    assert dumped["messages"][0]["status"] == MessageStatus.RECEIVED.value

    # stored form stays snake_case and reloads from either
    assert Conversation.model_validate(conversation.model_dump(mode="json")) == conversation
    assert Conversation.model_validate(dumped) == conversation


def test_summary_drops_messages():
    conversation = Conversation(
        id="c1",
        platform=Platform.WHATSAPP,
        external_user_id="1555",
        display_name="Ravi",
        avatar_url="https://a",
        ai_paused=True,
    )
    summary = conversation.summary()
    assert summary.id == "c1"
    assert summary.ai_paused is True
    assert not hasattr(summary, "messages")


def test_analyze_request_accepts_camel_and_snake():
    assert AnalyzeRequest.model_validate({"threadId": "c1"}).thread_id == "c1"
    assert AnalyzeRequest.model_validate({"thread_id": "c1"}).thread_id == "c1"


def test_runtime_config_secret_values_skip_empty():
    config = RuntimeConfig(
        graph_api_version="v24.0",
        ai_api_base="https://ai.test",
        ai_model="m",
        verify_token="tok",
        access_token=None,
        ai_api_key="",
    )
    assert config.secret_values() == ["tok"]
