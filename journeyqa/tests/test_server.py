"""Tests for the HTTP API."""
import time

import pytest
from fastapi.testclient import TestClient

from journey_fakes import journey
from journeyqa.src.report.summary import build_journey_result, now_iso
from journeyqa.src.server.app import create_app
from journeyqa.src.server.run_manager import RunManager
from journeyqa.src.utils.config import AppConfig


LOGIN = {
    "name": "Login",
    "url": "https://example.com/login",
    "steps": [{"action": "Type alice into the username field"}, {"action": "Click Sign in", "waitAfter": 200}],
}


async def _runner(path, options):
    options.log_callback(f"ran {path.name}")
    return build_journey_result(journey("Click"), [], now_iso(), time.time())


@pytest.fixture
def config(tmp_path):
    return AppConfig(
        output_dir=str(tmp_path / "reports"),
        journeys_dir=str(tmp_path / "journeys"),
        suites_dir=str(tmp_path / "suites"),
    )


@pytest.fixture
def client(config):
    manager = RunManager(config, journey_runner=_runner, suite_runner=_runner)
    with TestClient(create_app(config, manager)) as test_client:
        yield test_client


def _wait_for_run(client, run_id):
    for _ in range(100):
        body = client.get(f"/api/run/{run_id}").json()
        if body["status"] != "running":
            return body
        time.sleep(0.02)
    raise AssertionError("run did not finish")


class TestJourneyEndpoints:
    """CRUD over the journeys directory."""

    def test_create_list_get_update_delete(self, client, tmp_path):
        created = client.post("/api/journeys", json={"filename": "login", "data": LOGIN})
        assert created.status_code == 200
        assert created.json() == {"filename": "login.yaml"}
        assert (tmp_path / "journeys" / "login.yaml").is_file()

        listing = client.get("/api/journeys").json()
        assert listing == [
            {"filename": "login.yaml", "name": "Login", "url": "https://example.com/login", "step_count": 2}
        ]

        fetched = client.get("/api/journeys/login.yaml").json()
        assert fetched["steps"][0] == {"action": "Type alice into the username field"}
        assert fetched["steps"][1] == {"action": "Click Sign in", "waitAfter": 200}

        updated = client.put("/api/journeys/login.yaml", json={"data": {**LOGIN, "name": "Login v2"}})
        assert updated.status_code == 200
        assert client.get("/api/journeys/login.yaml").json()["name"] == "Login v2"
        assert client.get("/api/journey-files").json() == ["login.yaml"]

        assert client.delete("/api/journeys/login.yaml").json() == {"ok": True}
        assert client.get("/api/journeys/login.yaml").status_code == 404

    def test_validation_errors(self, client):
        response = client.post("/api/journeys", json={"filename": "bad", "data": {"name": "", "steps": []}})
        assert response.status_code == 400
        fields = [error["field"] for error in response.json()["errors"]]
        assert fields == ["name", "url", "steps"]

    def test_duplicate_file(self, client):
        client.post("/api/journeys", json={"filename": "login", "data": LOGIN})
        response = client.post("/api/journeys", json={"filename": "login.yaml", "data": LOGIN})
        assert response.status_code == 409

    def test_update_missing(self, client):
        assert client.put("/api/journeys/ghost.yaml", json={"data": LOGIN}).status_code == 404


class TestSuiteEndpoints:
    def test_suite_paths_point_at_journeys(self, client, tmp_path):
        response = client.post(
            "/api/suites",
            json={"filename": "smoke", "data": {"name": "Smoke", "journeys": ["login.yaml"]}},
        )
        assert response.status_code == 200
        text = (tmp_path / "suites" / "smoke.yaml").read_text(encoding="utf-8")
        assert "../journeys/login.yaml" in text

        suite = client.get("/api/suites/smoke.yaml").json()
        assert suite["journeys"] == [{"path": "../journeys/login.yaml"}]
        assert client.get("/api/suites").json()[0]["journey_count"] == 1

    def test_suite_validation(self, client):
        response = client.post("/api/suites", json={"filename": "s", "data": {"name": "S", "journeys": []}})
        assert response.status_code == 400


class TestRuns:
    def test_run_journey_produces_report(self, client):
        client.post("/api/journeys", json={"filename": "login", "data": LOGIN})
        started = client.post("/api/run/journey/login.yaml")
        assert started.status_code == 200
        run = _wait_for_run(client, started.json()["run_id"])

        assert run["status"] == "completed"
        assert run["logs"] == ["ran login.yaml"]
        assert run["summary"]["status"] == "passed"
        report = client.get(run["report_url"])
        assert report.status_code == 200
        assert "text/html" in report.headers["content-type"]

        reports = client.get("/api/reports").json()
        assert len(reports) == 1
        assert reports[0]["type"] == "journey"

    def test_run_missing_file(self, client):
        assert client.post("/api/run/suite/none.yaml").status_code == 404

    def test_unknown_run(self, client):
        assert client.get("/api/run/run_0_abc").status_code == 404

    def test_report_name_is_checked(self, client):
        assert client.get("/reports/..secret.html").status_code == 400
        assert client.get("/reports/missing.html").status_code == 404


def test_health(client):
    assert client.get("/").json() == {"status": "ok", "active_run": None}
