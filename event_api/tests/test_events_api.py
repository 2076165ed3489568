"""HTTP-level tests for /api/events against the in-memory store."""

import re


HEX_ID = re.compile(r"^[0-9a-f]{24}$")


class TestCreate:
    def test_create_returns_201_with_generated_id(self, client, store):
        res = client.post("/api/events", json={"name": "Launch Party", "host": "u1"})

        assert res.status_code == 201
        body = res.json()
        assert body["name"] == "Launch Party"
        assert body["host"] == "u1"
        assert HEX_ID.match(body["_id"])
        assert body["_id"] in store.events

    def test_create_applies_defaults(self, client):
        body = client.post("/api/events", json={"name": "Picnic"}).json()

        assert body["active"] is True
        assert body["participants"] == []
        assert body["favoritesBy"] == []

    def test_create_drops_unknown_fields(self, client):
        body = client.post("/api/events", json={"name": "Picnic", "colour": "red"}).json()

        assert "colour" not in body

    def test_create_missing_name_returns_500_with_validation_error(self, client, store):
        res = client.post("/api/events", json={"host": "u1"})

        assert res.status_code == 500
        body = res.json()
        assert body["name"] == "ValidationError"
        assert body["errors"][0]["loc"] == ["name"]
        assert store.events == {}

    def test_create_non_object_body_returns_500(self, client):
        res = client.post("/api/events", json=["not", "an", "event"])

        assert res.status_code == 500


class TestIndex:
    def test_lists_events_with_host_expanded(self, client, store):
        store.add_user("u1", "Ada", "ada.png", email="ada@example.com")
        store.add_event(name="Launch Party", host="u1")
        store.add_event(name="Hackathon", host="missing")

        res = client.get("/api/events")

        assert res.status_code == 200
        events = res.json()
        assert [e["name"] for e in events] == ["Launch Party", "Hackathon"]
        assert events[0]["host"] == {"_id": "u1", "name": "Ada", "imageUrl": "ada.png"}
        assert events[1]["host"] is None

    def test_empty_collection(self, client):
        res = client.get("/api/events")

        assert res.status_code == 200
        assert res.json() == []

    def test_store_failure_returns_500_with_error(self, client, store, monkeypatch):
        async def broken(**_kwargs):
            raise RuntimeError("connection refused")

        monkeypatch.setattr(store, "events_find", broken)

        res = client.get("/api/events")

        assert res.status_code == 500
        assert res.json() == {"name": "RuntimeError", "message": "connection refused"}


class TestShow:
    def test_show_expands_host_and_participants(self, client, store):
        store.add_user("u1", "Ada", "ada.png")
        store.add_user("u2", "Grace", None)
        event_id = store.add_event(
            name="Launch Party",
            host="u1",
            participants=[{"user": "u2", "role": "speaker"}],
        )

        res = client.get(f"/api/events/{event_id}")

        assert res.status_code == 200
        body = res.json()
        assert body["_id"] == event_id
        assert body["host"]["name"] == "Ada"
        assert body["participants"] == [
            {"user": {"_id": "u2", "name": "Grace", "imageUrl": None}, "role": "speaker"}
        ]

    def test_unknown_id_returns_404_with_empty_body(self, client):
        res = client.get("/api/events/000000000000000000000000")

        assert res.status_code == 404
        assert res.content == b""


class TestFilteredLists:
    def test_search_is_case_insensitive_substring(self, client, store):
        store.add_event(name="Launch Party")
        store.add_event(name="Board Meeting")

        for text in ("launch", "LAUNCH", "party"):
            res = client.get(f"/api/events/search/{text}")
            assert res.status_code == 200
            assert [e["name"] for e in res.json()] == ["Launch Party"]

        res = client.get("/api/events/search/xyz")
        assert res.status_code == 200
        assert res.json() == []

    def test_search_text_may_contain_encoded_slash(self, client, store):
        store.add_event(name="AC/DC night")
        store.add_event(name="Jazz night")

        res = client.get("/api/events/search/AC%2FDC")

        assert res.status_code == 200
        assert [e["name"] for e in res.json()] == ["AC/DC night"]

    def test_hosting(self, client, store):
        store.add_user("u1", "Ada")
        store.add_event(name="Mine", host="u1")
        store.add_event(name="Theirs", host="u2")

        events = client.get("/api/events/hosting/u1").json()

        assert [e["name"] for e in events] == ["Mine"]
        assert events[0]["host"]["_id"] == "u1"

    def test_going(self, client, store):
        store.add_event(name="Attending", participants=[{"user": "u3"}, {"user": "u4"}])
        store.add_event(name="Not attending", participants=[{"user": "u4"}])

        events = client.get("/api/events/going/u3").json()

        assert [e["name"] for e in events] == ["Attending"]
        # Only the host is expanded in list views.
        assert events[0]["participants"][0]["user"] == "u3"

    def test_favorite(self, client, store):
        store.add_event(name="Liked", favoritesBy=["u5", "u6"])
        store.add_event(name="Ignored", favoritesBy=["u6"])

        events = client.get("/api/events/favorite/u5").json()

        assert [e["name"] for e in events] == ["Liked"]


class TestUpsert:
    def test_updates_existing_and_ignores_client_id(self, client, store):
        event_id = store.add_event(name="Launch Party", host="u1", location="Hall A")

        res = client.put(f"/api/events/{event_id}", json={"_id": "other", "name": "x"})

        assert res.status_code == 200
        body = res.json()
        assert body["_id"] == event_id
        assert body["name"] == "x"
        assert body["location"] == "Hall A"
        assert "other" not in store.events
        assert store.events[event_id]["name"] == "x"

    def test_inserts_with_defaults_when_absent(self, client, store):
        res = client.put("/api/events/abc123", json={"name": "Fresh"})

        assert res.status_code == 200
        body = res.json()
        assert body["_id"] == "abc123"
        assert body["participants"] == []
        assert "abc123" in store.events

    def test_invalid_field_type_returns_500(self, client, store):
        event_id = store.add_event(name="Launch Party")

        res = client.put(f"/api/events/{event_id}", json={"name": 123})

        assert res.status_code == 500
        assert res.json()["name"] == "ValidationError"
        assert store.events[event_id]["name"] == "Launch Party"

    def test_non_object_body_returns_500(self, client, store):
        event_id = store.add_event(name="Launch Party")

        res = client.put(f"/api/events/{event_id}", json=[1, 2])

        assert res.status_code == 500
        assert res.json()["name"] == "TypeError"


class TestPatch:
    def test_replace_name_keeps_other_fields(self, client, store):
        event_id = store.add_event(name="Launch Party", host="u1", favoritesBy=["u2"])

        res = client.patch(
            f"/api/events/{event_id}",
            json=[{"op": "replace", "path": "/name", "value": "Renamed"}],
        )

        assert res.status_code == 200
        body = res.json()
        assert body["name"] == "Renamed"
        assert body["host"] == "u1"
        assert body["favoritesBy"] == ["u2"]

    def test_operations_on_identifier_are_dropped(self, client, store):
        event_id = store.add_event(name="Launch Party")

        res = client.patch(
            f"/api/events/{event_id}",
            json=[
                {"op": "replace", "path": "/_id", "value": "hijacked"},
                {"op": "add", "path": "/favoritesBy/-", "value": "u9"},
            ],
        )

        assert res.status_code == 200
        assert res.json()["_id"] == event_id
        assert res.json()["favoritesBy"] == ["u9"]
        assert "hijacked" not in store.events

    def test_unresolvable_path_returns_500_and_leaves_document(self, client, store):
        event_id = store.add_event(name="Launch Party")
        before = dict(store.events[event_id])

        res = client.patch(
            f"/api/events/{event_id}",
            json=[
                {"op": "replace", "path": "/name", "value": "Renamed"},
                {"op": "remove", "path": "/nope/deeper"},
            ],
        )

        assert res.status_code == 500
        assert res.json()["name"] == "OPERATION_PATH_UNRESOLVABLE"
        assert res.json()["index"] == 1
        assert store.events[event_id] == before

    def test_error_index_refers_to_submitted_position(self, client, store):
        event_id = store.add_event(name="Launch Party")

        res = client.patch(
            f"/api/events/{event_id}",
            json=[
                {"op": "replace", "path": "/_id", "value": "hijacked"},
                {"op": "remove", "path": "/nope"},
            ],
        )

        assert res.status_code == 500
        assert res.json()["index"] == 1
        assert res.json()["operation"] == {"op": "remove", "path": "/nope"}

    def test_schema_violation_returns_500_and_leaves_document(self, client, store):
        event_id = store.add_event(name="Launch Party")
        before = dict(store.events[event_id])

        res = client.patch(
            f"/api/events/{event_id}",
            json=[{"op": "replace", "path": "/participants", "value": "everyone"}],
        )

        assert res.status_code == 500
        assert res.json()["name"] == "ValidationError"
        assert store.events[event_id] == before

    def test_unknown_id_returns_404(self, client):
        res = client.patch(
            "/api/events/000000000000000000000000",
            json=[{"op": "replace", "path": "/name", "value": "Renamed"}],
        )

        assert res.status_code == 404
        assert res.content == b""


class TestDestroy:
    def test_destroy_then_show_returns_404(self, client, store):
        event_id = store.add_event(name="Launch Party")

        res = client.delete(f"/api/events/{event_id}")
        assert res.status_code == 204
        assert res.content == b""

        res = client.get(f"/api/events/{event_id}")
        assert res.status_code == 404

    def test_unknown_id_returns_404(self, client):
        res = client.delete("/api/events/000000000000000000000000")

        assert res.status_code == 404
        assert res.content == b""


def test_health(client):
    res = client.get("/health")

    assert res.status_code == 200
    assert res.json() == {"status": "ok", "database": "healthy", "redis": "healthy"}


def test_metrics_exposed(client):
    client.get("/api/events")

    res = client.get("/metrics")

    assert res.status_code == 200
    assert "http_requests_total" in res.text
