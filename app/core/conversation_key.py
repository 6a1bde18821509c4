"""Conversation id derivation from (platform, external user id)."""

from __future__ import annotations

from uuid import NAMESPACE_URL, uuid5

from app.schemas.messaging import Platform

_NAMESPACE = uuid5(NAMESPACE_URL, "inbox-relay/conversations")


def build_conversation_key(platform: Platform, external_user_id: str) -> str:
    """Lock / lookup key for a sender: {platform}:{external_user_id}."""
    return f"{platform.value}:{external_user_id}"


def build_conversation_id(platform: Platform, external_user_id: str) -> str:
    """
    Deterministic opaque conversation id.

    The same sender always maps to the same id, so find-or-create is a plain
    keyed lookup and two workers can never mint different ids for one sender.
    """
    return uuid5(_NAMESPACE, build_conversation_key(platform, external_user_id)).hex
