"""
Tests for the HTTP API.
"""

import pytest
from fastapi.testclient import TestClient

from backr.api import app, clamp_limit, get_ledger_client
from backr.db import get_session
from backr.models import BackingStatus, EntityType
from ledger import LedgerError, MockLedgerClient


class BrokenLedger(MockLedgerClient):
    """Ledger whose lookups fail."""

    async def validate_party_id(self, party_id):
        raise LedgerError("participant down")


@pytest.fixture
def ledger():
    return MockLedgerClient(balances={"party-rich": 42})


@pytest.fixture
def client(session_factory, ledger):
    async def override_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = override_session
    app.dependency_overrides[get_ledger_client] = lambda: ledger
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestClampLimit:
    """Test limit parsing."""

    @pytest.mark.parametrize(
        "raw,expected",
        [(None, 5), ("3", 3), ("0", 1), ("-4", 1), ("50", 10), ("abc", 5)],
    )
    def test_clamp(self, raw, expected):
        assert clamp_limit(raw) == expected


class TestHealth:
    """Test service endpoints."""

    def test_health_reports_ledger(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "ok"
        assert body["ledger"]["connected"] is True

    def test_root_lists_endpoints(self, client):
        response = client.get("/")

        assert response.status_code == 200
        assert "collaborations" in response.json()["endpoints"]


class TestEntities:
    """Test entity lookup."""

    def test_entity_detail(self, client, add_rows, make_entity, make_backing):
        add_rows(
            make_entity("e1", description="DeFi", website="https://e1.example.com"),
            *make_backing("u1", "e1", BackingStatus.LOCKED),
            *make_backing("u2", "e1", BackingStatus.WITHDRAWN),
        )

        response = client.get("/entities/e1")

        assert response.status_code == 200
        body = response.json()
        assert body["type"] == "FEATURED_APP"
        assert body["website"] == "https://e1.example.com"
        assert body["active_backers"] == 1

    def test_entity_not_found(self, client):
        response = client.get("/entities/missing")

        assert response.status_code == 404
        assert response.json()["error"] == "not_found"


class TestCollaborations:
    """Test the suggestions endpoint."""

    def test_suggestions_shape(self, client, add_rows, make_entity, make_backing):
        add_rows(
            make_entity("src", description="We provide DeFi lending and staking services"),
            make_entity("cand", description="DeFi staking and yield protocol"),
            *make_backing("u2", "src"),
            *make_backing("u2", "cand"),
        )

        response = client.get("/entities/src/collaborations")

        assert response.status_code == 200
        body = response.json()
        assert body["strategy"] == "rules"
        suggestion = body["suggestions"][0]
        assert suggestion["entity"] == {
            "id": "cand",
            "name": "Entity cand",
            "type": "FEATURED_APP",
            "description": "DeFi staking and yield protocol",
            "logo_url": None,
            "website": None,
            "party_id": "party-cand",
        }
        assert suggestion["score"] == 37
        assert suggestion["match_type"] == "type"
        assert suggestion["rule_trace"] is None

    def test_unknown_entity_is_empty_not_error(self, client):
        response = client.get("/entities/nope/collaborations")

        assert response.status_code == 200
        assert response.json() == {"suggestions": [], "strategy": "rules"}

    def test_limit_clamped_to_ten(self, client, add_rows, make_entity):
        add_rows(
            make_entity("src", description="source"),
            *[make_entity(f"c{i:02d}", description="candidate") for i in range(12)],
        )

        response = client.get("/entities/src/collaborations", params={"limit": 50})

        assert len(response.json()["suggestions"]) == 10

    def test_limit_floor_is_one(self, client, add_rows, make_entity):
        add_rows(
            make_entity("src", description="source"),
            make_entity("a", description="candidate"),
            make_entity("b", description="candidate"),
        )

        response = client.get("/entities/src/collaborations", params={"limit": 0})

        assert len(response.json()["suggestions"]) == 1

    def test_explain_includes_traces(self, client, add_rows, make_entity):
        add_rows(
            make_entity("src", description="source"),
            make_entity("val", EntityType.VALIDATOR, description="candidate"),
        )

        response = client.get("/entities/src/collaborations", params={"explain": "true"})

        trace = response.json()["suggestions"][0]["rule_trace"]
        assert [t["rule_id"] for t in trace] == [
            "type_match",
            "complementary",
            "keyword_overlap",
            "shared_backers",
        ]
        assert trace[1]["status"] == "PASS"
        assert trace[1]["match_type"] == "complementary"


class TestLedgerParties:
    """Test party lookup through the injected ledger client."""

    def test_known_balance(self, client):
        response = client.get("/ledger/parties/party-rich")

        assert response.status_code == 200
        assert response.json() == {"party_id": "party-rich", "valid": True, "balance": 42}

    def test_ledger_failure_maps_to_502(self, session_factory):
        app.dependency_overrides[get_ledger_client] = lambda: BrokenLedger()
        try:
            response = TestClient(app).get("/ledger/parties/anyone")
        finally:
            app.dependency_overrides.clear()

        assert response.status_code == 502
        assert response.json()["error"] == "ledger_error"
