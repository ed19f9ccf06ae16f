"""Integration tests for the comparison endpoints."""

from typing import Any

from fastapi.testclient import TestClient


def comparison_payload(*model_ids: str, save: bool = True) -> dict[str, Any]:
    return {
        "name": "caching answers",
        "prompt": "Explain caching",
        "models": [
            {"id": model_id, "provider": "openai", "name": model_id.title()}
            for model_id in model_ids
        ],
        "tags": ["docs"],
        "save": save,
    }


class TestComparisonEndpoints:
    def test_run_comparison(self, integration_client: TestClient) -> None:
        response = integration_client.post(
            "/v1/comparisons", json=comparison_payload("alpha", "beta", "broken")
        )

        assert response.status_code == 200
        data = response.json()
        session = data["session"]
        assert session["metadata"]["completed"] is not None
        assert [r["model_id"] for r in session["results"]] == [
            "alpha",
            "beta",
            "broken",
        ]
        rankings = data["analysis"]["rankings"]
        assert rankings["speed"][-1] == "broken"
        assert rankings["quality"][-1] == "broken"
        assert rankings["overall"][-1] == "broken"

    def test_session_lifecycle(self, integration_client: TestClient) -> None:
        created = integration_client.post(
            "/v1/comparisons", json=comparison_payload("alpha", "beta")
        ).json()
        session_id = created["session"]["id"]

        listed = integration_client.get("/v1/comparisons").json()
        assert [session["id"] for session in listed] == [session_id]

        loaded = integration_client.get(f"/v1/comparisons/{session_id}")
        assert loaded.status_code == 200
        assert loaded.json()["metadata"]["tags"] == ["docs"]

        deleted = integration_client.delete(f"/v1/comparisons/{session_id}")
        assert deleted.json() == {"session_id": session_id, "deleted": True}

        gone = integration_client.get(f"/v1/comparisons/{session_id}")
        assert gone.status_code == 404
        missing = integration_client.delete(f"/v1/comparisons/{session_id}")
        assert missing.status_code == 404

    def test_unsaved_comparison_is_not_listed(
        self, integration_client: TestClient
    ) -> None:
        response = integration_client.post(
            "/v1/comparisons", json=comparison_payload("alpha", save=False)
        )

        assert response.status_code == 200
        assert integration_client.get("/v1/comparisons").json() == []

    def test_export_formats(self, integration_client: TestClient) -> None:
        session_id = integration_client.post(
            "/v1/comparisons", json=comparison_payload("alpha", "broken")
        ).json()["session"]["id"]

        markdown = integration_client.get(
            f"/v1/comparisons/{session_id}/export", params={"format": "markdown"}
        )
        assert markdown.status_code == 200
        assert markdown.headers["content-type"].startswith("text/markdown")
        assert markdown.text.startswith("# Model Comparison Report")

        csv_export = integration_client.get(
            f"/v1/comparisons/{session_id}/export", params={"format": "csv"}
        )
        assert csv_export.headers["content-type"].startswith("text/csv")
        assert len(csv_export.text.strip().splitlines()) == 3

        json_export = integration_client.get(f"/v1/comparisons/{session_id}/export")
        assert json_export.json()["session"]["id"] == session_id

    def test_export_unknown_session(self, integration_client: TestClient) -> None:
        response = integration_client.get("/v1/comparisons/cmp_missing/export")
        assert response.status_code == 404

    def test_invalid_comparisons(self, integration_client: TestClient) -> None:
        empty = integration_client.post("/v1/comparisons", json=comparison_payload())
        assert empty.status_code == 400

        duplicate = integration_client.post(
            "/v1/comparisons", json=comparison_payload("alpha", "alpha")
        )
        assert duplicate.status_code == 400
        assert "Duplicate" in duplicate.json()["detail"]
