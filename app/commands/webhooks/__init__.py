"""Webhook command handlers."""

from app.commands.webhooks.ingest_command import IngestWebhookCommand
from app.commands.webhooks.verify_command import VerifyWebhookCommand

__all__ = ["IngestWebhookCommand", "VerifyWebhookCommand"]
