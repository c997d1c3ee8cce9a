"""Tests for persona endpoints."""

from fastapi.testclient import TestClient


def _create(client: TestClient, **body) -> dict:
    response = client.post("/api/v1/personas", json=body)
    assert response.status_code == 201, response.text
    return response.json()["persona"]


class TestPersonaEndpoints:
    def test_create_with_named_links(self, test_client: TestClient, seed) -> None:
        persona = _create(
            test_client,
            name="  Night owls  ",
            company_id=seed["acme"],
            platforms=["TikTok", "Twitch"],
            interests=["Streaming"],
        )

        assert persona["name"] == "Night owls"
        assert persona["company_name"] == "Acme"
        assert [p["name"] for p in persona["platforms"]] == ["TikTok", "Twitch"]
        assert [i["name"] for i in persona["interests"]] == ["Streaming"]
        assert persona["content_count"] == 0

    def test_create_rejects_bad_company(self, test_client: TestClient, seed) -> None:
        inactive = test_client.post(
            "/api/v1/personas", json={"name": "Ghosts", "company_id": seed["globex"]}
        )
        unknown = test_client.post("/api/v1/personas", json={"name": "Ghosts", "company_id": 999})

        assert inactive.status_code == 400
        assert inactive.json()["detail"] == "Company is inactive"
        assert unknown.status_code == 400
        assert unknown.json()["detail"] == "Invalid company ID"

    def test_list_and_filter(self, test_client: TestClient, seed) -> None:
        test_client.put(f"/api/v1/personas/{seed['parents']}", json={"active": False})

        names = [p["name"] for p in test_client.get("/api/v1/personas").json()]
        active = [p["name"] for p in test_client.get("/api/v1/personas", params={"active": True}).json()]

        assert names == ["Gamers", "Parents"]
        assert active == ["Gamers"]

    def test_company_personas(self, test_client: TestClient, seed) -> None:
        response = test_client.get(f"/api/v1/personas/company/{seed['acme']}")

        assert response.status_code == 200
        assert [p["name"] for p in response.json()] == ["Gamers", "Parents"]
        assert test_client.get("/api/v1/personas/company/999").status_code == 404

    def test_get_missing(self, test_client: TestClient, db_engine) -> None:
        assert test_client.get("/api/v1/personas/999").status_code == 404

    def test_update_omitted_and_empty_lists(self, test_client: TestClient, seed) -> None:
        persona = _create(test_client, name="Cyclists", platforms=["Strava"], interests=["Gravel"])
        url = f"/api/v1/personas/{persona['id']}"

        data = test_client.put(url, json={"age_range": "30-50"}).json()["persona"]
        assert data["age_range"] == "30-50"
        assert [p["name"] for p in data["platforms"]] == ["Strava"]

        data = test_client.put(url, json={"interests": []}).json()["persona"]
        assert data["interests"] == []
        assert [p["name"] for p in data["platforms"]] == ["Strava"]

    def test_update_missing(self, test_client: TestClient, db_engine) -> None:
        assert test_client.put("/api/v1/personas/999", json={"name": "Nobody"}).status_code == 404

    def test_delete(self, test_client: TestClient, seed) -> None:
        response = test_client.delete(f"/api/v1/personas/{seed['gamers']}")

        assert response.status_code == 200
        assert test_client.get(f"/api/v1/personas/{seed['gamers']}").status_code == 404
        assert test_client.delete(f"/api/v1/personas/{seed['gamers']}").status_code == 404


class TestDimensionEndpoints:
    def test_platforms_sorted(self, test_client: TestClient, seed) -> None:
        response = test_client.get("/api/v1/personas/platforms/all")

        assert response.status_code == 200
        assert [p["name"] for p in response.json()] == ["Instagram", "TikTok", "YouTube"]

    def test_interests_sorted(self, test_client: TestClient, seed) -> None:
        _create(test_client, name="Gardeners", interests=["Roses", "Compost"])

        response = test_client.get("/api/v1/personas/interests/all")

        assert [i["name"] for i in response.json()] == ["Compost", "Roses"]
