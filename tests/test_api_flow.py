"""End-to-end HTTP flow through the FastAPI app with an in-memory ledger."""
from datetime import timedelta

from adrewards.config import SYNDICATED_LINKS
from adrewards.errors import RepositoryUnavailable


def test_health_and_root(client):
    assert client.get("/health").json()["status"] == "healthy"
    assert client.get("/").json()["api_base"] == "/api/v1"


def test_identity_header_required(client):
    resp = client.get("/api/v1/ads")
    assert resp.status_code == 401
    body = resp.json()
    assert body["success"] is False
    assert "request_id" in body


def test_list_ads_with_usage_summary(client, user_headers, record_factory, curated_ad_factory):
    ad = curated_ad_factory(title="House Ad")
    record_factory(ad_id="SYNDICATED-1", reward=40)
    resp = client.get("/api/v1/ads", headers=user_headers())
    assert resp.status_code == 200
    body = resp.json()
    assert len(body["ads"]) == len(SYNDICATED_LINKS) + 1
    assert body["ads"][-1]["id"] == ad.id
    assert body["daily_count"] == 1
    assert body["daily_limit"] == 25
    assert body["today_reward"] == 40
    assert body["can_watch_more"] is True
    first = body["ads"][0]
    assert first["id"] == "SYNDICATED-1"
    assert first["is_watched"] is True and first["can_watch"] is False


def test_full_watch_flow(client, clock, user_headers):
    headers = user_headers("user-42")
    start = client.post("/api/v1/watch/start", json={"ad_id": "SYNDICATED-4"}, headers=headers)
    assert start.status_code == 201
    started = start.json()
    assert started["ad"]["kind"] == "syndicated"
    assert "click once" in started["message"]

    clock.advance(seconds=15)
    done = client.post(
        "/api/v1/watch/complete",
        json={"session_id": started["session_id"], "reported_seconds": "15.1", "clicked": True},
        headers=headers,
    )
    assert done.status_code == 200
    result = done.json()
    assert result["success"] is True
    assert result["reason"] == "ok"
    assert 20 <= result["reward_amount"] <= 80
    assert result["record"]["approval_status"] == "approved"

    history = client.get("/api/v1/watch/history", headers=headers).json()
    assert history["total"] == 1
    assert history["records"][0]["ad_title"]
    assert history["records"][0]["ad_title"] != "Unknown Ad"

    earnings = client.get("/api/v1/watch/earnings", headers=headers).json()
    assert earnings["lifetime_reward"] == result["reward_amount"]
    assert earnings["daily_count"] == 1

    again = client.post("/api/v1/watch/start", json={"ad_id": "SYNDICATED-4"}, headers=headers)
    assert again.status_code == 409
    assert again.json()["error"] == "already_watched_recently"


def test_rejected_completion_is_http_200(client, user_headers):
    headers = user_headers()
    session_id = client.post("/api/v1/watch/start", json={"ad_id": "SYNDICATED-2"}, headers=headers).json()["session_id"]
    resp = client.post(
        "/api/v1/watch/complete",
        json={"session_id": session_id, "reported_seconds": 20},
        headers=headers,
    )
    assert resp.status_code == 200
    assert resp.json()["success"] is False
    assert resp.json()["reason"] == "not_clicked"
    assert resp.json()["reward_amount"] == 0


def test_infinite_duration_is_rejected_and_ledgered_as_zero(client, user_headers, curated_ad_factory, repo):
    ad = curated_ad_factory(title="House Ad")
    headers = user_headers()
    session_id = client.post("/api/v1/watch/start", json={"ad_id": ad.id}, headers=headers).json()["session_id"]
    resp = client.post(
        "/api/v1/watch/complete",
        json={"session_id": session_id, "reported_seconds": "inf"},
        headers=headers,
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is False
    assert body["reward_amount"] == 0
    assert body["reason"] == "not_enough_time"
    [record] = repo.list_view_records()
    assert record.reported_watch_seconds == 0.0
    assert record.approval_status.value == "rejected"


def test_domain_errors_map_to_status_codes(client, user_headers, record_factory):
    headers = user_headers()
    assert client.post("/api/v1/watch/start", json={"ad_id": "AD-NOPE"}, headers=headers).status_code == 404

    missing = client.post("/api/v1/watch/complete", json={"session_id": "WATCHX", "reported_seconds": 15}, headers=headers)
    assert missing.status_code == 404
    assert missing.json()["error"] == "session_not_found"

    session_id = client.post("/api/v1/watch/start", json={"ad_id": "SYNDICATED-1"}, headers=headers).json()["session_id"]
    forbidden = client.post(
        "/api/v1/watch/complete",
        json={"session_id": session_id, "reported_seconds": 15, "clicked": True},
        headers=user_headers("someone-else"),
    )
    assert forbidden.status_code == 403
    assert forbidden.json()["error"] == "forbidden"

    for i in range(24):
        record_factory(ad_id=f"AD-OLD-{i}")
    limited = client.post("/api/v1/watch/start", json={"ad_id": "SYNDICATED-2"}, headers=headers)
    assert limited.status_code == 429
    assert limited.json()["error"] == "daily_limit_exceeded"


def test_validation_errors(client, user_headers):
    resp = client.post("/api/v1/watch/start", json={}, headers=user_headers())
    assert resp.status_code == 422
    assert resp.json()["error"] == "validation_error"


def test_listing_survives_storage_outage(client, service, user_headers, monkeypatch):
    def _down():
        raise RepositoryUnavailable()

    monkeypatch.setattr(service.repository, "list_ads", _down)
    monkeypatch.setattr(service.repository, "list_view_records", _down)
    resp = client.get("/api/v1/ads", headers=user_headers())
    assert resp.status_code == 200
    body = resp.json()
    assert len(body["ads"]) == len(SYNDICATED_LINKS)
    assert body["daily_count"] == 0


def test_start_reports_storage_outage_as_503(client, service, user_headers, monkeypatch):
    def _down():
        raise RepositoryUnavailable()

    monkeypatch.setattr(service.repository, "list_view_records", _down)
    resp = client.post("/api/v1/watch/start", json={"ad_id": "SYNDICATED-1"}, headers=user_headers())
    assert resp.status_code == 503
    assert resp.json()["error"] == "repository_unavailable"


def test_admin_requires_key(client):
    assert client.get("/api/v1/admin/ads").status_code == 403
    assert client.get("/api/v1/admin/ads", headers={"X-Admin-Key": "wrong"}).status_code == 403


def test_admin_catalog_management(client, admin_headers, user_headers):
    created = client.post(
        "/api/v1/admin/ads",
        json={"title": "Spring Sale", "target_url": "https://example.com/spring"},
        headers=admin_headers,
    )
    assert created.status_code == 201
    ad = created.json()
    assert ad["kind"] == "curated"
    assert (ad["reward_min"], ad["reward_max"], ad["required_watch_seconds"]) == (1, 50, 15)

    listed = client.get("/api/v1/admin/ads", headers=admin_headers).json()
    assert [a["id"] for a in listed] == [ad["id"]]

    patched = client.patch(f"/api/v1/admin/ads/{ad['id']}", json={"status": "inactive"}, headers=admin_headers)
    assert patched.status_code == 200
    assert patched.json()["status"] == "inactive"
    public = client.get("/api/v1/ads", headers=user_headers()).json()["ads"]
    assert ad["id"] not in {a["id"] for a in public}

    bad = client.post(
        "/api/v1/admin/ads",
        json={"title": "Bad", "target_url": "https://example.com", "reward_min": 9, "reward_max": 2},
        headers=admin_headers,
    )
    assert bad.status_code == 422

    assert client.patch("/api/v1/admin/ads/SYNDICATED-1", json={"title": "x"}, headers=admin_headers).status_code == 422
    assert client.delete(f"/api/v1/admin/ads/{ad['id']}", headers=admin_headers).status_code == 204
    assert client.delete(f"/api/v1/admin/ads/{ad['id']}", headers=admin_headers).status_code == 404


def test_admin_view_export_enriches_records(client, admin_headers, record_factory, curated_ad_factory):
    ad = curated_ad_factory(title="Visible Title")
    record_factory(ad_id=ad.id, ago=timedelta(hours=1))
    record_factory(ad_id="AD-GONE", ago=timedelta(minutes=5))
    views = client.get("/api/v1/admin/views", headers=admin_headers).json()
    assert [v["ad_title"] for v in views] == ["Unknown Ad", "Visible Title"]
    assert views[0]["canonical_user_id"] == "user-1"
    assert views[0]["user_email"] is None
