"""
Tests degli endpoint HTTP.

Le richieste passano per l'app FastAPI completa (handler delle eccezioni
inclusi) con la sessione SQLite di test e token JWT reali.
"""

import datetime
import uuid
from unittest.mock import AsyncMock

from sqlalchemy.exc import OperationalError

from app.core.security import create_access_token

API = "/api/v1"


async def create_budget(client, headers, payload) -> dict:
    response = await client.post(f"{API}/budgets/", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


async def add_item(client, headers, budget_id, **overrides) -> dict:
    body = {
        "description": "Instalação elétrica",
        "quantity": 2,
        "unit_price": "100.00",
        "discount_value": "10",
        "discount_kind": "percentage",
    }
    body.update(overrides)
    response = await client.post(f"{API}/budgets/{budget_id}/items", json=body, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


# ============================================================
# Tests per sistema e autenticazione
# ============================================================


class TestSystem:

    async def test_health(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    async def test_missing_token(self, client):
        response = await client.get(f"{API}/budgets/")

        assert response.status_code == 401

    async def test_invalid_token(self, client):
        response = await client.get(f"{API}/budgets/", headers={"Authorization": "Bearer not-a-jwt"})

        assert response.status_code == 401

    async def test_expired_token(self, client, owner_id):
        token = create_access_token(str(owner_id), expires_delta=datetime.timedelta(minutes=-1))

        response = await client.get(f"{API}/budgets/", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401


# ============================================================
# Tests per i preventivi
# ============================================================


class TestBudgetEndpoints:

    async def test_create_budget(self, client, auth_headers, budget_payload, owner_id):
        data = await create_budget(client, auth_headers, budget_payload)

        assert data["status"] == "draft"
        assert data["total"] == "0.00"
        assert data["owner_id"] == str(owner_id)
        assert data["days_remaining"] is None
        assert data["purge_eligible"] is False
        assert data["version"] == 1

    async def test_create_budget_validation(self, client, auth_headers, budget_payload):
        """Test nome cliente troppo corto e CPF troppo corto vengono rifiutati."""
        budget_payload.update(client_name="Al", client_tax_id="123")

        response = await client.post(f"{API}/budgets/", json=budget_payload, headers=auth_headers)

        assert response.status_code == 422

    async def test_items_update_total(self, client, auth_headers, budget_payload):
        """Test 180 (10%) + 190 (10 fisso) = 370."""
        budget = await create_budget(client, auth_headers, budget_payload)

        first = await add_item(client, auth_headers, budget["id"])
        await add_item(client, auth_headers, budget["id"], discount_kind="fixed")

        assert first["total"] == "180.00"
        detail = (await client.get(f"{API}/budgets/{budget['id']}/detail", headers=auth_headers)).json()
        assert detail["total"] == "370.00"
        assert [item["total"] for item in detail["items"]] == ["180.00", "190.00"]

    async def test_update_and_delete_item(self, client, auth_headers, budget_payload):
        budget = await create_budget(client, auth_headers, budget_payload)
        item = await add_item(client, auth_headers, budget["id"])

        response = await client.put(
            f"{API}/budgets/{budget['id']}/items/{item['id']}",
            json={"quantity": 1},
            headers=auth_headers,
        )
        assert response.status_code == 200
        assert response.json()["total"] == "90.00"

        response = await client.delete(f"{API}/budgets/{budget['id']}/items/{item['id']}", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["total"] == "0.00"

        items = (await client.get(f"{API}/budgets/{budget['id']}/items", headers=auth_headers)).json()
        assert items == []

    async def test_toggle_status_cycle(self, client, auth_headers, budget_payload):
        budget = await create_budget(client, auth_headers, budget_payload)

        statuses = []
        for _ in range(3):
            response = await client.patch(f"{API}/budgets/{budget['id']}/status/toggle", headers=auth_headers)
            assert response.status_code == 200
            statuses.append(response.json()["status"])

        assert statuses == ["sent", "approved", "draft"]

    async def test_stale_version_conflict(self, client, auth_headers, budget_payload):
        budget = await create_budget(client, auth_headers, budget_payload)
        url = f"{API}/budgets/{budget['id']}"

        first = await client.put(url, json={"notes": "Primeira versão", "version": 1}, headers=auth_headers)
        second = await client.put(url, json={"notes": "Outra sessão", "version": 1}, headers=auth_headers)

        assert first.status_code == 200
        assert second.status_code == 409
        assert second.json()["error_code"] == "CONFLICT_STATE"
        assert second.json()["extra"] == {"current_version": 2}

    async def test_other_owner_gets_not_found(self, client, auth_headers, other_auth_headers, budget_payload):
        budget = await create_budget(client, auth_headers, budget_payload)

        response = await client.get(f"{API}/budgets/{budget['id']}", headers=other_auth_headers)

        assert response.status_code == 404
        assert response.json()["error_code"] == "RESOURCE_NOT_FOUND"

    async def test_commit_failure_returns_503(self, client, db_session, auth_headers, budget_payload, monkeypatch):
        """Test un errore al commit diventa 503 e la scrittura non resta in sessione."""
        monkeypatch.setattr(
            db_session, "commit",
            AsyncMock(side_effect=OperationalError("COMMIT", {}, Exception("connection lost"))),
        )

        response = await client.post(f"{API}/budgets/", json=budget_payload, headers=auth_headers)

        assert response.status_code == 503
        assert response.json()["error_code"] == "PERSISTENCE_ERROR"
        listed = (await client.get(f"{API}/budgets/", headers=auth_headers)).json()
        assert listed["total"] == 0

    async def test_unknown_budget(self, client, auth_headers):
        response = await client.get(f"{API}/budgets/{uuid.uuid4()}", headers=auth_headers)

        assert response.status_code == 404

    async def test_list_filters(self, client, auth_headers, budget_payload):
        await create_budget(client, auth_headers, budget_payload)
        budget_payload["client_name"] = "Pedro Alves"
        await create_budget(client, auth_headers, budget_payload)

        response = await client.get(f"{API}/budgets/", params={"search": "pedro"}, headers=auth_headers)

        data = response.json()
        assert data["total"] == 1
        assert data["total_pages"] == 1
        assert data["items"][0]["client_name"] == "Pedro Alves"

    async def test_search_percent_is_literal(self, client, auth_headers, budget_payload):
        budget_payload["client_name"] = "Loja 100% Ltda"
        await create_budget(client, auth_headers, budget_payload)
        budget_payload["client_name"] = "Loja 1000 Ltda"
        await create_budget(client, auth_headers, budget_payload)

        response = await client.get(f"{API}/budgets/", params={"search": "100%"}, headers=auth_headers)

        assert [b["client_name"] for b in response.json()["items"]] == ["Loja 100% Ltda"]

    async def test_item_amount_limit(self, client, auth_headers, budget_payload):
        budget = await create_budget(client, auth_headers, budget_payload)

        response = await client.post(
            f"{API}/budgets/{budget['id']}/items",
            json={"description": "Lote", "quantity": 2147483647, "unit_price": "9999999999.99"},
            headers=auth_headers,
        )

        assert response.status_code == 422

    async def test_blank_item_description_on_update(self, client, auth_headers, budget_payload):
        budget = await create_budget(client, auth_headers, budget_payload)
        item = await add_item(client, auth_headers, budget["id"])

        response = await client.put(
            f"{API}/budgets/{budget['id']}/items/{item['id']}",
            json={"description": "   "},
            headers=auth_headers,
        )

        assert response.status_code == 422

    async def test_invalid_total_range(self, client, auth_headers):
        response = await client.get(
            f"{API}/budgets/", params={"min_total": "500", "max_total": "100"}, headers=auth_headers
        )

        assert response.status_code == 422
        assert response.json()["error_code"] == "BUSINESS_VALIDATION_ERROR"


# ============================================================
# Tests per cestino
# ============================================================


class TestTrashEndpoints:

    async def test_trash_restore_purge(self, client, auth_headers, budget_payload):
        budget = await create_budget(client, auth_headers, budget_payload)
        await add_item(client, auth_headers, budget["id"])
        url = f"{API}/budgets/{budget['id']}"

        trashed = await client.delete(url, headers=auth_headers)
        assert trashed.status_code == 200
        assert trashed.json()["days_remaining"] == 30

        trash = (await client.get(f"{API}/budgets/trash", headers=auth_headers)).json()
        active = (await client.get(f"{API}/budgets/", headers=auth_headers)).json()
        assert [b["id"] for b in trash["items"]] == [budget["id"]]
        assert active["total"] == 0

        restored = await client.post(f"{url}/restore", headers=auth_headers)
        assert restored.status_code == 200
        assert restored.json()["deleted_at"] is None

        purged = await client.delete(f"{url}/purge", headers=auth_headers)
        assert purged.status_code == 204
        assert (await client.get(url, headers=auth_headers)).status_code == 404

    async def test_trashed_budget_rejects_items(self, client, auth_headers, budget_payload):
        budget = await create_budget(client, auth_headers, budget_payload)
        await client.delete(f"{API}/budgets/{budget['id']}", headers=auth_headers)

        response = await client.post(
            f"{API}/budgets/{budget['id']}/items",
            json={"description": "Extra", "quantity": 1, "unit_price": "10"},
            headers=auth_headers,
        )

        assert response.status_code == 422

    async def test_restore_active_budget_conflict(self, client, auth_headers, budget_payload):
        budget = await create_budget(client, auth_headers, budget_payload)

        response = await client.post(f"{API}/budgets/{budget['id']}/restore", headers=auth_headers)

        assert response.status_code == 409


# ============================================================
# Tests per documento, profilo e statistiche
# ============================================================


class TestOtherEndpoints:

    async def test_document_includes_profile(self, client, auth_headers, budget_payload):
        await client.put(f"{API}/profile/", json={"full_name": "Souza Reformas"}, headers=auth_headers)
        budget = await create_budget(client, auth_headers, budget_payload)
        await add_item(client, auth_headers, budget["id"])

        response = await client.get(f"{API}/budgets/{budget['id']}/document", headers=auth_headers)

        data = response.json()
        assert response.status_code == 200
        assert data["profile"]["full_name"] == "Souza Reformas"
        assert len(data["budget"]["items"]) == 1

    async def test_profile_get_and_update(self, client, auth_headers, owner_id):
        created = await client.get(f"{API}/profile/", headers=auth_headers)
        assert created.status_code == 200
        assert created.json()["owner_id"] == str(owner_id)

        updated = await client.put(
            f"{API}/profile/", json={"email": "contato@souza.com.br"}, headers=auth_headers
        )
        assert updated.status_code == 200
        assert updated.json()["email"] == "contato@souza.com.br"
        assert updated.json()["id"] == created.json()["id"]

    async def test_analytics_day(self, client, auth_headers, budget_payload):
        await create_budget(client, auth_headers, budget_payload)

        response = await client.get(f"{API}/analytics/", params={"period": "day"}, headers=auth_headers)

        data = response.json()
        assert response.status_code == 200
        assert data["period"] == "day"
        assert len(data["buckets"]) == 31
        assert data["summary"]["count"] == 1
        assert data["status_breakdown"]["draft"] == 1

    async def test_analytics_invalid_period(self, client, auth_headers):
        response = await client.get(f"{API}/analytics/", params={"period": "quarter"}, headers=auth_headers)

        assert response.status_code == 422
