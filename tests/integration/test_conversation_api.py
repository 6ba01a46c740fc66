"""Testes de integração das rotas HTTP (store em memória)."""

from __future__ import annotations

from unittest.mock import MagicMock

from omnichannel.application.conversation_mode import ConversationModeController
from omnichannel.domain.conversations import StoreError


def _open(client, company_id: str = "acme") -> dict:
    response = client.post(
        "/conversations",
        json={"company_id": company_id, "channel": "whatsapp", "customer_ref": "cust-1"},
    )
    assert response.status_code == 201
    return response.json()


def test_health_endpoint(client):
    response = client.get("/health")
    assert response.status_code == 200
    payload = response.json()
    assert payload["status"] == "ok"
    assert payload["service"] == "omnichannel"


def test_correlation_id_is_echoed(client):
    response = client.get("/health", headers={"X-Correlation-ID": "corr-42"})
    assert response.headers["x-correlation-id"] == "corr-42"


class TestOpenConversation:
    def test_creates_in_ai_mode(self, client):
        conversation = _open(client)
        assert conversation["mode"] == "ai"
        assert conversation["status"] == "active"
        assert conversation["taken_over_by"] is None

    def test_unknown_channel_rejected(self, client):
        response = client.post("/conversations", json={"company_id": "acme", "channel": "fax"})
        assert response.status_code == 422


class TestTakeover:
    def test_requires_operator_header(self, client):
        conversation = _open(client)
        response = client.post(f"/conversations/{conversation['id']}/takeover")
        assert response.status_code == 422

    def test_first_operator_keeps_ownership(self, client):
        conversation = _open(client)
        url = f"/conversations/{conversation['id']}/takeover"

        first = client.post(url, headers={"X-Operator-Id": "op-1"})
        second = client.post(url, headers={"X-Operator-Id": "op-2"})

        assert first.status_code == 200
        assert second.status_code == 200
        assert first.json()["mode"] == "human"
        assert second.json()["taken_over_by"] == "op-1"
        assert second.json()["taken_over_at"] == first.json()["taken_over_at"]

    def test_unknown_conversation_is_404(self, client):
        response = client.post(
            "/conversations/missing/takeover",
            headers={"X-Operator-Id": "op-1", "X-Correlation-ID": "corr-404"},
        )
        assert response.status_code == 404
        detail = response.json()["detail"]
        assert detail["error"] == "conversation_not_found"
        assert detail["correlation_id"] == "corr-404"


class TestOperatorMessage:
    def test_rejected_before_takeover(self, client):
        conversation = _open(client)
        response = client.post(
            f"/conversations/{conversation['id']}/operator-message",
            json={"content": "Olá"},
            headers={"X-Operator-Id": "op-1", "X-Correlation-ID": "corr-409"},
        )

        assert response.status_code == 409
        detail = response.json()["detail"]
        assert detail["error"] == "invalid_state"
        assert detail["mode"] == "ai"
        assert detail["correlation_id"] == "corr-409"

    def test_accepted_after_takeover(self, client):
        conversation = _open(client)
        cid = conversation["id"]
        client.post(f"/conversations/{cid}/takeover", headers={"X-Operator-Id": "op-1"})

        response = client.post(
            f"/conversations/{cid}/operator-message",
            json={"content": "Posso ajudar?", "metadata": {"productImage": "https://img"}},
            headers={"X-Operator-Id": "op-1", "X-Operator-Name": "Ana"},
        )

        assert response.status_code == 200
        message = response.json()
        assert message["role"] == "operator"
        assert message["operator_name"] == "Ana"
        assert message["metadata"]["product_image"] == "https://img"

    def test_operator_name_falls_back_to_id(self, client):
        cid = _open(client)["id"]
        client.post(f"/conversations/{cid}/takeover", headers={"X-Operator-Id": "op-1"})

        response = client.post(
            f"/conversations/{cid}/operator-message",
            json={"content": "Oi"},
            headers={"X-Operator-Id": "op-1"},
        )
        assert response.json()["operator_name"] == "op-1"

    def test_scalar_extra_metadata_is_stored(self, client):
        cid = _open(client)["id"]
        client.post(f"/conversations/{cid}/takeover", headers={"X-Operator-Id": "op-1"})

        response = client.post(
            f"/conversations/{cid}/operator-message",
            json={"content": "oi", "metadata": {"extra": "oops"}},
            headers={"X-Operator-Id": "op-1"},
        )

        assert response.status_code == 200
        assert response.json()["metadata"]["extra"] == {"extra": "oops"}

    def test_blank_content_is_422(self, client):
        cid = _open(client)["id"]
        client.post(f"/conversations/{cid}/takeover", headers={"X-Operator-Id": "op-1"})

        response = client.post(
            f"/conversations/{cid}/operator-message",
            json={"content": "   "},
            headers={"X-Operator-Id": "op-1"},
        )
        assert response.status_code == 422
        assert response.json()["detail"]["error"] == "invalid_request"


class TestReadConversations:
    def test_detail_includes_messages_in_order(self, client):
        cid = _open(client)["id"]
        client.post(f"/conversations/{cid}/takeover", headers={"X-Operator-Id": "op-1"})
        for text in ("primeira", "segunda"):
            client.post(
                f"/conversations/{cid}/operator-message",
                json={"content": text},
                headers={"X-Operator-Id": "op-1"},
            )

        response = client.get(f"/conversations/{cid}")

        assert response.status_code == 200
        payload = response.json()
        assert payload["conversation"]["id"] == cid
        assert [m["content"] for m in payload["messages"]] == ["primeira", "segunda"]

    def test_detail_unknown_is_404(self, client):
        assert client.get("/conversations/missing").status_code == 404

    def test_active_list_scoped_by_company(self, client):
        a = _open(client, "acme")
        _open(client, "globex")

        response = client.get("/conversations/active", params={"company_id": "acme"})

        assert response.status_code == 200
        assert [c["id"] for c in response.json()] == [a["id"]]

    def test_active_requires_company(self, client):
        assert client.get("/conversations/active").status_code == 422


class TestIdentifyCustomer:
    def test_created_then_matched(self, client):
        body = {"company_id": "acme", "contact": {"phone": "+55 11 98765-4321", "name": "Maria"}}

        created = client.post("/customers/identify", json=body)
        body["contact"] = {"phone": "(11) 98765-4321"}
        matched = client.post("/customers/identify", json=body)

        assert created.status_code == 201
        assert created.json()["created"] is True
        assert created.json()["identifiers"]["phone"] == "11987654321"
        assert matched.status_code == 200
        assert matched.json()["matched_by"] == "phone"
        assert matched.json()["customer"]["id"] == created.json()["customer"]["id"]

    def test_no_valid_identifier_is_422(self, client):
        response = client.post(
            "/customers/identify",
            json={"company_id": "acme", "contact": {"cpf": "123.456.789-00"}},
        )
        assert response.status_code == 422

    def test_conflict_is_409(self, client):
        client.post(
            "/customers/identify", json={"company_id": "acme", "contact": {"phone": "11987654321"}}
        )
        client.post(
            "/customers/identify", json={"company_id": "acme", "contact": {"email": "x@y.com"}}
        )

        response = client.post(
            "/customers/identify",
            json={"company_id": "acme", "contact": {"phone": "11987654321", "email": "x@y.com"}},
        )

        assert response.status_code == 409
        assert response.json()["detail"]["error"] == "identity_conflict"


def test_store_failure_is_503_and_retryable(client):
    failing_store = MagicMock()
    failing_store.get_conversation.side_effect = StoreError("firestore down")
    client.app.state.mode_controller = ConversationModeController(store=failing_store)

    response = client.get("/conversations/any", headers={"X-Correlation-ID": "corr-503"})

    assert response.status_code == 503
    detail = response.json()["detail"]
    assert detail == {
        "error": "store_unavailable",
        "retryable": True,
        "correlation_id": "corr-503",
    }
