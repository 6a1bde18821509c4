"""Fake Meta Graph API served through httpx.MockTransport."""

import json

import httpx
import pytest


class FakeGraphApi:
    """
    Records every request and answers like the Graph API would.

    - GET /{v}/{user_id}: profile from `profiles`, 400 otherwise
    - POST /{v}/me/messages: Instagram send / typing
    - POST /{v}/{phone_number_id}/messages: WhatsApp send / read receipt
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.profiles: dict[str, dict] = {}
        self.reject_sends = False
        self.network_down = False

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.network_down:
            raise httpx.ConnectError("connection refused", request=request)

        if request.method == "GET":
            user_id = request.url.path.rsplit("/", 1)[-1]
            if user_id in self.profiles:
                return httpx.Response(200, json=self.profiles[user_id])
            return httpx.Response(
                400, json={"error": {"message": "Unsupported get request", "code": 100}}
            )

        body = json.loads(request.content or b"{}")
        if "sender_action" in body or body.get("status") == "read":
            return httpx.Response(200, json={"success": True})
        if self.reject_sends:
            return httpx.Response(
                400, json={"error": {"message": "Invalid recipient", "code": 100}}
            )
        n = len(self.sent_bodies())
        if request.url.path.endswith("/me/messages"):
            return httpx.Response(
                200,
                json={"recipient_id": body["recipient"]["id"], "message_id": f"mid.out.{n}"},
            )
        return httpx.Response(
            200,
            json={
                "messaging_product": "whatsapp",
                "contacts": [{"input": body.get("to"), "wa_id": body.get("to")}],
                "messages": [{"id": f"wamid.out.{n}"}],
            },
        )

    def sent_bodies(self) -> list[dict]:
        """JSON bodies of text sends (typing indicators excluded)."""
        bodies = []
        for request in self.requests:
            if request.method != "POST":
                continue
            body = json.loads(request.content or b"{}")
            if "sender_action" in body or body.get("status") == "read":
                continue
            bodies.append(body)
        return bodies

    def typing_bodies(self) -> list[dict]:
        return [
            json.loads(r.content)
            for r in self.requests
            if r.method == "POST"
            and (
                "sender_action" in json.loads(r.content or b"{}")
                or json.loads(r.content or b"{}").get("status") == "read"
            )
        ]


@pytest.fixture
def fake_graph():
    return FakeGraphApi()
