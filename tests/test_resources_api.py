"""Tests for the resources API endpoints."""

from __future__ import annotations

import httpx


class TestResourcesAPI:
    async def test_list_resources(self, app_client: httpx.AsyncClient) -> None:
        response = await app_client.get("/resources")
        assert response.status_code == 200
        data = response.json()
        assert [r["id"] for r in data] == ["r1", "r2", "r3", "r4"]
        assert data[0]["tags"] == {"env": "prod", "team": "core"}

    async def test_list_resources_sorted(self, app_client: httpx.AsyncClient) -> None:
        response = await app_client.get(
            "/resources", params={"sort_by": "cost", "sort_dir": "desc"}
        )
        assert [r["id"] for r in response.json()] == ["r1", "r3", "r2", "r4"]

    async def test_search_single_clause(self, app_client: httpx.AsyncClient) -> None:
        response = await app_client.post(
            "/resources/search",
            json=[{"field": "region", "operator": "IS", "values": ["us-east-1"]}],
        )
        assert response.status_code == 200
        assert [r["id"] for r in response.json()] == ["r1"]

    async def test_search_tag_clause(self, app_client: httpx.AsyncClient) -> None:
        response = await app_client.post(
            "/resources/search",
            json=[{"field": "tag:env", "operator": "IS_NOT_EMPTY", "values": []}],
        )
        assert [r["id"] for r in response.json()] == ["r1", "r2"]

    async def test_search_empty_body_returns_all(self, app_client: httpx.AsyncClient) -> None:
        response = await app_client.post("/resources/search", json=[])
        assert len(response.json()) == 4

    async def test_search_rejects_unknown_field(self, app_client: httpx.AsyncClient) -> None:
        response = await app_client.post(
            "/resources/search",
            json=[{"field": "cost", "operator": "IS", "values": ["1"]}],
        )
        assert response.status_code == 422

    async def test_search_rejects_unknown_operator(self, app_client: httpx.AsyncClient) -> None:
        response = await app_client.post(
            "/resources/search",
            json=[{"field": "name", "operator": "LIKE", "values": ["x"]}],
        )
        assert response.status_code == 422

    async def test_filter_values(self, app_client: httpx.AsyncClient) -> None:
        response = await app_client.get(
            "/resources/filter-values", params={"field": "account"}
        )
        assert response.status_code == 200
        assert response.json() == ["dev", "prod"]

    async def test_filter_values_for_tag(self, app_client: httpx.AsyncClient) -> None:
        response = await app_client.get(
            "/resources/filter-values", params={"field": "tag:env"}
        )
        assert response.json() == ["prod", "staging"]

    async def test_filter_values_rejects_bad_field(self, app_client: httpx.AsyncClient) -> None:
        for field in ("tag", "cost"):
            response = await app_client.get(
                "/resources/filter-values", params={"field": field}
            )
            assert response.status_code == 400

    async def test_tag_keys(self, app_client: httpx.AsyncClient) -> None:
        response = await app_client.get("/resources/tag-keys")
        assert response.json() == ["env", "team"]

    async def test_ingest_inserts_and_replaces(self, app_client: httpx.AsyncClient) -> None:
        response = await app_client.post(
            "/resources",
            json=[
                {
                    "id": "r5",
                    "provider": "aws",
                    "account": "prod",
                    "service": "lambda",
                    "name": "resize",
                    "region": "us-east-1",
                    "cost": 1.5,
                    "tags": {"env": "prod"},
                },
                {
                    "id": "r1",
                    "provider": "aws",
                    "account": "prod",
                    "service": "ec2",
                    "name": "web-1",
                    "region": "us-east-1",
                    "cost": 12.0,
                },
            ],
        )
        assert response.status_code == 201
        assert response.json() == {"ingested": 2}

        data = (await app_client.get("/resources")).json()
        assert [r["id"] for r in data] == ["r1", "r2", "r3", "r4", "r5"]
        assert data[0]["cost"] == 12.0
        assert data[0]["tags"] == {}
        assert data[4]["fetched_at"]

        values = (await app_client.get("/resources/filter-values", params={"field": "service"})).json()
        assert "lambda" in values

    async def test_ingest_empty_list(self, app_client: httpx.AsyncClient) -> None:
        response = await app_client.post("/resources", json=[])
        assert response.status_code == 201
        assert response.json() == {"ingested": 0}

    async def test_ingest_rejects_incomplete_resource(self, app_client: httpx.AsyncClient) -> None:
        response = await app_client.post("/resources", json=[{"id": "r9", "provider": "aws"}])
        assert response.status_code == 422
        assert len((await app_client.get("/resources")).json()) == 4
