"""Tests for suite orchestration."""
import asyncio
import time

from journey_fakes import FakeSession, quiet_options
from journeyqa.src.engine.suite_runner import SuiteRunner
from journeyqa.src.loader.suite_loader import load_suite
from journeyqa.src.report.summary import build_journey_result, now_iso
from journeyqa.src.utils.models import JourneySummary, RunStatus


class RecordingExecutor:
    def __init__(self, statuses=None):
        self.statuses = dict(statuses or {})
        self.calls = []

    async def execute(self, journey, shared_session=None):
        self.calls.append((journey, shared_session))
        result = build_journey_result(journey, [], now_iso(), time.time())
        status = self.statuses.get(journey.name, RunStatus.PASSED)
        return result.model_copy(
            update={"status": status, "summary": JourneySummary(total_steps=len(journey.steps), passed=1)}
        )


def _layout(tmp_path, suite_body):
    journeys = tmp_path / "journeys"
    journeys.mkdir()
    (journeys / "login.yaml").write_text(
        "name: Login\nurl: https://{{host}}/login\nvariables:\n  who: default\nsteps:\n  - Sign in as {{who}}\n",
        encoding="utf-8",
    )
    (journeys / "search.yaml").write_text(
        "name: Search\nurl: https://{{host}}/\nsteps:\n  - Search for {{term}}\n  - Open the first result\n",
        encoding="utf-8",
    )
    suites = tmp_path / "suites"
    suites.mkdir()
    path = suites / "smoke.yaml"
    path.write_text(suite_body, encoding="utf-8")
    return load_suite(path)


class TestSuiteRunner:
    """Variable scoping, failure isolation and the shared browser."""

    def test_runs_journeys_with_scoped_variables(self, tmp_path):
        suite = _layout(
            tmp_path,
            "name: Smoke\nvariables:\n  host: example.com\n  term: shoes\n"
            "journeys:\n  - path: ../journeys/login.yaml\n    variables:\n      who: admin\n"
            "  - ../journeys/search.yaml\n",
        )
        executor = RecordingExecutor()
        result = asyncio.run(SuiteRunner(quiet_options(), executor=executor).execute(suite))

        login, search = (call[0] for call in executor.calls)
        assert login.url == "https://example.com/login"
        assert login.steps[0].action == "Sign in as admin"
        assert search.steps[0].action == "Search for shoes"
        assert all(call[1] is None for call in executor.calls)
        assert result.status == RunStatus.PASSED
        assert result.summary.total_journeys == 2
        assert result.summary.total_steps == 3

    def test_cli_variables_override_suite_variables(self, tmp_path):
        suite = _layout(
            tmp_path,
            "name: Smoke\nvariables:\n  host: example.com\n  term: shoes\njourneys:\n  - ../journeys/search.yaml\n",
        )
        executor = RecordingExecutor()
        options = quiet_options(variables={"term": "hats"})
        asyncio.run(SuiteRunner(options, executor=executor).execute(suite))
        assert executor.calls[0][0].steps[0].action == "Search for hats"

    def test_broken_journey_does_not_stop_suite(self, tmp_path):
        suite = _layout(
            tmp_path,
            "name: Smoke\nvariables:\n  host: example.com\n  term: x\n"
            "journeys:\n  - ../journeys/missing.yaml\n  - ../journeys/search.yaml\n",
        )
        executor = RecordingExecutor()
        result = asyncio.run(SuiteRunner(quiet_options(), executor=executor).execute(suite))

        assert len(executor.calls) == 1
        assert result.status == RunStatus.FAILED
        assert result.journey_results[0].journey.name.endswith("missing.yaml")
        assert result.summary.failed == 1
        assert result.summary.passed == 1

    def test_undefined_variable_yields_failed_stub(self, tmp_path):
        suite = _layout(tmp_path, "name: Smoke\nvariables:\n  host: example.com\njourneys:\n  - ../journeys/search.yaml\n")
        executor = RecordingExecutor()
        result = asyncio.run(SuiteRunner(quiet_options(), executor=executor).execute(suite))
        assert executor.calls == []
        assert result.journey_results[0].status == RunStatus.FAILED

    def test_shared_session_is_reused_and_closed(self, tmp_path, monkeypatch):
        suite = _layout(
            tmp_path,
            "name: Smoke\nsharedSession: true\nvariables:\n  host: example.com\n  term: x\n"
            "journeys:\n  - ../journeys/login.yaml\n  - ../journeys/search.yaml\n",
        )
        shared = FakeSession()

        async def launch(self):
            return shared

        monkeypatch.setattr(SuiteRunner, "_launch_shared", launch)
        executor = RecordingExecutor({"Login": RunStatus.WARNING})
        result = asyncio.run(SuiteRunner(quiet_options(), executor=executor).execute(suite))

        assert [call[1] for call in executor.calls] == [shared, shared]
        assert shared.closed is True
        assert result.status == RunStatus.WARNING
