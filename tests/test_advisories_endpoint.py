from krushi_sathi.core.config import settings
from krushi_sathi.core.errors import PersistenceError
from krushi_sathi.db.persistence import reset_store

ADVISORY = {
    "title": "Crop Advisory",
    "text": "Here are personalized steps for your crop.",
    "steps": ["Inspect leaves", "Isolate affected area", "Apply organic pesticide", "Control irrigation"],
    "lang": "en",
    "source": "template",
}


def test_save_and_list(client, store):
    resp = client.post("/api/advisories", json={"userId": "farmer-1", "advisory": ADVISORY})
    assert resp.status_code == 201
    saved_id = resp.json()["id"]
    assert resp.json()["ok"] is True

    resp = client.get("/api/advisories", params={"userId": "farmer-1"})
    assert resp.status_code == 200
    [item] = resp.json()["items"]
    assert item["id"] == saved_id
    assert item["userId"] == "farmer-1"
    assert item["steps"] == ADVISORY["steps"]
    assert item["text"] == ADVISORY["text"]
    assert "createdAt" in item


def test_saved_advisories_are_listed_newest_first(client, store):
    for title in ("first", "second", "third"):
        client.post("/api/advisories", json={"userId": "farmer-1", "advisory": dict(ADVISORY, title=title)})
    items = client.get("/api/advisories", params={"userId": "farmer-1"}).json()["items"]
    assert [i["title"] for i in items] == ["third", "second", "first"]


def test_save_requires_user_and_valid_advisory(client, store):
    assert client.post("/api/advisories", json={"userId": "", "advisory": ADVISORY}).status_code == 400
    assert client.post("/api/advisories", json={"userId": "u", "advisory": {"title": "x"}}).status_code == 400
    assert client.post("/api/advisories", json={"userId": "u", "advisory": dict(ADVISORY, lang="de")}).status_code == 400


def test_list_requires_user_id(client, store):
    resp = client.get("/api/advisories")
    assert resp.status_code == 400
    assert resp.json()["code"] == "VALIDATION_ERROR"


def test_unconfigured_database_in_production(client, monkeypatch):
    monkeypatch.setattr(settings, "ENVIRONMENT", "production")
    reset_store() # drop the in-memory store built at startup
    resp = client.post("/api/advisories", json={"userId": "farmer-1", "advisory": ADVISORY})
    assert resp.status_code == 503
    assert resp.json() == {"error": "Database not configured", "code": "DB_CONFIG_ERROR"}
    assert client.get("/api/advisories", params={"userId": "farmer-1"}).status_code == 503


def test_store_failure_is_reported(client, store, monkeypatch):
    def broken_save(record):
        raise PersistenceError("Failed to save advisory")

    monkeypatch.setattr(store, "save", broken_save)
    resp = client.post("/api/advisories", json={"userId": "farmer-1", "advisory": ADVISORY})
    assert resp.status_code == 500
    assert resp.json()["code"] == "PERSISTENCE_ERROR"
