"""HTTP tests for ``/api/v1/audit``."""

from __future__ import annotations

import pytest
from tests.helpers.utils import auth

BASE = "/api/v1/audit"


@pytest.fixture
def headers(client, sign_in):
    token = sign_in(uid="uid-aud", email="aud@example.com")["accessToken"]
    h = auth(token)
    client.post("/api/v1/snippets", json={"keyword": "/a", "value": "1"}, headers=h)
    client.post("/api/v1/snippets", json={"keyword": "/a", "value": "2"}, headers=h)
    return h


def test_logs(client, headers):
    body = client.get(f"{BASE}/logs", headers=headers).get_json()
    actions = [e["action"] for e in body["data"]]
    assert actions == ["snippet_create", "snippet_create", "exchange"]
    assert body["meta"] == {"total": 3, "page": 1, "limit": 20}
    assert "request_snapshot" not in body["data"][0]


def test_logs_filters_and_paging(client, headers):
    failures = client.get(f"{BASE}/logs?status=failure", headers=headers).get_json()
    assert [e["status_code"] for e in failures["data"]] == [409]

    page = client.get(f"{BASE}/logs?limit=1&page=2", headers=headers).get_json()
    assert page["meta"] == {"total": 3, "page": 2, "limit": 1}
    assert len(page["data"]) == 1


def test_logs_filter_by_resource(client, headers):
    sessions = client.get(f"{BASE}/logs?resource=session", headers=headers).get_json()
    assert [e["action"] for e in sessions["data"]] == ["exchange"]

    snippets = client.get(f"{BASE}/logs?resource=snippet", headers=headers).get_json()
    assert snippets["meta"]["total"] == 2
    assert {e["resource"] for e in snippets["data"]} == {"snippet"}


def test_bad_status_filter(client, headers):
    assert client.get(f"{BASE}/logs?status=weird", headers=headers).status_code == 422


def test_stats(client, headers):
    data = client.get(f"{BASE}/stats", headers=headers).get_json()["data"]
    assert data["total"] == 3
    assert data["by_status"] == {"success": 2, "failure": 1, "error": 0}
    assert data["by_action"] == {"exchange": 1, "snippet_create": 2}


def test_other_actor_sees_nothing(client, headers, sign_in):
    token = sign_in(uid="uid-else", email="else@example.com")["accessToken"]
    body = client.get(f"{BASE}/logs", headers=auth(token)).get_json()
    assert [e["action"] for e in body["data"]] == ["exchange"]
