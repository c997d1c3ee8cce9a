"""Tests for content, feed and engagement endpoints."""

import pytest
from fastapi.testclient import TestClient


def _create(client: TestClient, seed: dict[str, int], **overrides) -> dict:
    body = {
        "title": "Launch teaser",
        "type": "video",
        "content_url": "https://www.tiktok.com/@acme/video/7234567890123456789",
        "personas": [seed["gamers"]],
        "platforms": [seed["tiktok"]],
        "company_id": seed["acme"],
    }
    body.update(overrides)
    response = client.post("/api/v1/content", json=body, headers={"X-User-Id": str(seed["author"])})
    assert response.status_code == 201, response.text
    return response.json()["content"]


class TestContentEndpoints:
    def test_create_and_get(self, test_client: TestClient, seed) -> None:
        created = _create(test_client, seed)

        response = test_client.get(f"/api/v1/content/{created['id']}")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "draft"
        assert data["author_id"] == seed["author"]
        assert data["author_name"] == "Ada Author"
        assert [p["name"] for p in data["personas"]] == ["Gamers"]
        assert [p["name"] for p in data["platforms"]] == ["TikTok"]

    def test_create_validates_body(self, test_client: TestClient, seed) -> None:
        response = test_client.post("/api/v1/content", json={"title": "x", "type": "video"})
        assert response.status_code == 422

        response = test_client.post("/api/v1/content", json={"title": "Valid title", "type": "podcast"})
        assert response.status_code == 422

    def test_get_missing(self, test_client: TestClient, db_engine) -> None:
        assert test_client.get("/api/v1/content/999").status_code == 404

    def test_list_content(self, test_client: TestClient, seed) -> None:
        _create(test_client, seed, title="First draft")
        live = _create(test_client, seed, title="Live now")
        test_client.post(f"/api/v1/content/{live['id']}/publish")

        titles = [item["title"] for item in test_client.get("/api/v1/content").json()]

        assert titles == ["Live now", "First draft"]

    def test_update_distinguishes_omitted_and_empty_links(self, test_client: TestClient, seed) -> None:
        created = _create(test_client, seed)
        url = f"/api/v1/content/{created['id']}"

        response = test_client.put(url, json={"title": "Renamed teaser"})
        assert response.status_code == 200
        data = response.json()["content"]
        assert data["title"] == "Renamed teaser"
        assert [p["id"] for p in data["personas"]] == [seed["gamers"]]

        response = test_client.put(url, json={"personas": []})
        data = response.json()["content"]
        assert data["personas"] == []
        assert [p["id"] for p in data["platforms"]] == [seed["tiktok"]]

    def test_update_missing(self, test_client: TestClient, db_engine) -> None:
        assert test_client.put("/api/v1/content/999", json={"title": "Nope nope"}).status_code == 404

    def test_delete(self, test_client: TestClient, seed) -> None:
        created = _create(test_client, seed)

        response = test_client.delete(f"/api/v1/content/{created['id']}")

        assert response.status_code == 200
        assert test_client.get(f"/api/v1/content/{created['id']}").status_code == 404
        assert test_client.delete(f"/api/v1/content/{created['id']}").status_code == 404

    def test_link_failure_is_reported(self, test_client: TestClient, seed) -> None:
        response = test_client.post(
            "/api/v1/content",
            json={"title": "Bad links", "type": "article", "personas": [999_999]},
        )

        assert response.status_code == 500
        assert response.json()["detail"] == "Error creating content"


class TestPublish:
    def test_publish_once(self, test_client: TestClient, seed) -> None:
        created = _create(test_client, seed)
        url = f"/api/v1/content/{created['id']}/publish"

        response = test_client.post(url)
        assert response.status_code == 200
        data = response.json()["content"]
        assert data["status"] == "published"
        assert data["publish_date"] is not None

        response = test_client.post(url)
        assert response.status_code == 409
        assert response.json()["detail"] == "Content is already published"

    def test_publish_missing(self, test_client: TestClient, db_engine) -> None:
        assert test_client.post("/api/v1/content/999/publish").status_code == 404

    def test_publish_only_through_publish_endpoint(self, test_client: TestClient, seed) -> None:
        response = test_client.post(
            "/api/v1/content",
            json={"title": "Sneaky launch", "type": "video", "status": "published"},
        )
        assert response.status_code == 400

        created = _create(test_client, seed)
        url = f"/api/v1/content/{created['id']}"
        assert test_client.put(url, json={"status": "published"}).status_code == 400
        assert test_client.get(url).json()["publish_date"] is None

    def test_published_content_cannot_be_unpublished(self, test_client: TestClient, seed) -> None:
        created = _create(test_client, seed)
        url = f"/api/v1/content/{created['id']}"
        test_client.post(f"{url}/publish")

        response = test_client.put(url, json={"status": "draft"})

        assert response.status_code == 409
        assert test_client.get(url).json()["status"] == "published"
        assert test_client.post(f"{url}/publish").status_code == 409


class TestEngagement:
    def test_record_view(self, test_client: TestClient, seed) -> None:
        created = _create(test_client, seed)
        url = f"/api/v1/content/{created['id']}/metrics"

        for _ in range(3):
            assert test_client.post(url, json={"type": "view"}).status_code == 200

        assert test_client.get(f"/api/v1/content/{created['id']}").json()["views"] == 3

    def test_invalid_type(self, test_client: TestClient, seed) -> None:
        created = _create(test_client, seed)

        response = test_client.post(f"/api/v1/content/{created['id']}/metrics", json={"type": "poke"})

        assert response.status_code == 400

    def test_missing_content(self, test_client: TestClient, db_engine) -> None:
        response = test_client.post("/api/v1/content/999/metrics", json={"type": "like"})
        assert response.status_code == 404


class TestPersonaFeed:
    def test_feed_envelope(self, test_client: TestClient, seed) -> None:
        older = _create(test_client, seed, title="Older post")
        newer = _create(test_client, seed, title="Newer post")
        test_client.post(f"/api/v1/content/{older['id']}/publish")

        response = test_client.get(
            f"/api/v1/content/persona/{seed['gamers']}/company/{seed['acme']}"
        )

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 2
        assert data["message"] is None
        # Published rows first, undated drafts last
        assert [item["id"] for item in data["items"]] == [older["id"], newer["id"]]
        assert data["items"][0]["platform_names"] == ["TikTok"]

    def test_empty_feed_is_not_an_error(self, test_client: TestClient, seed) -> None:
        response = test_client.get(
            f"/api/v1/content/persona/{seed['parents']}/company/{seed['acme']}"
        )

        assert response.status_code == 200
        assert response.json() == {
            "items": [],
            "total": 0,
            "message": "No content found for that persona & company",
        }


class TestBulkCreate:
    def test_bulk_create(self, test_client: TestClient, seed) -> None:
        response = test_client.post(
            "/api/v1/content/bulk",
            json={
                "items": [
                    {"title": "Bulk one", "type": "article", "scheduled_date": "2026-05-01T10:00:00.5Z"},
                    {"title": "Bulk two", "type": "event", "personas": [seed["parents"]]},
                ]
            },
            headers={"X-User-Id": str(seed["author"])},
        )

        assert response.status_code == 201
        data = response.json()
        assert data["count"] == 2
        first = test_client.get(f"/api/v1/content/{data['ids'][0]}").json()
        assert first["scheduled_date"] == "2026-05-01T10:00:00"
        assert first["author_id"] == seed["author"]

    def test_bulk_requires_items(self, test_client: TestClient, db_engine) -> None:
        assert test_client.post("/api/v1/content/bulk", json={"items": []}).status_code == 422


class TestPublishedFeed:
    @pytest.fixture
    def published(self, test_client: TestClient, seed) -> dict[str, int]:
        tiktok = _create(test_client, seed, title="On TikTok")
        insta = _create(
            test_client,
            seed,
            title="On Instagram",
            platforms=[seed["instagram"]],
            personas=[seed["parents"]],
        )
        _create(test_client, seed, title="Still a draft")
        for item in (tiktok, insta):
            test_client.post(f"/api/v1/content/{item['id']}/publish")
        return {"tiktok": tiktok["id"], "instagram": insta["id"]}

    def test_platform_filter_is_case_insensitive(self, test_client: TestClient, published) -> None:
        response = test_client.get("/api/v1/feed", params={"platforms": "instagram"})

        assert response.status_code == 200
        assert [row["id"] for row in response.json()] == [published["instagram"]]

    def test_all_published(self, test_client: TestClient, published) -> None:
        ids = {row["id"] for row in test_client.get("/api/v1/feed").json()}
        assert ids == set(published.values())

    def test_persona_scope(self, test_client: TestClient, seed, published) -> None:
        response = test_client.get("/api/v1/feed", params={"persona": seed["gamers"]})
        assert [row["id"] for row in response.json()] == [published["tiktok"]]

    def test_unknown_persona(self, test_client: TestClient, published) -> None:
        assert test_client.get("/api/v1/feed", params={"persona": 4040}).status_code == 404
