from __future__ import annotations

import json
from pathlib import Path
from typing import Mapping

import pytest

from perfbot.cli import main as cli_main
from perfbot.cli.main import main
from perfbot.datastore import ResolvedRun

REPO = "acme/engine"


def _write_config(path: Path, content: str) -> Path:
    path.write_text(content)
    return path


@pytest.fixture(autouse=True)
def _no_root_handlers(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("perfbot.cli.main.ensure_root_logging", lambda level: None)


@pytest.fixture()
def config_path(tmp_path: Path) -> Path:
    return _write_config(
        tmp_path / "perfbot.yaml",
        """
datastore:
  url: https://horreum.example.com
jenkins:
  url: https://jenkins.example.com
projects:
  acme/engine:
    horreum_test_id: 7
    jobs:
      bench:
        configurable_params: [threads]
        pull_request_number_param: PR
""",
    )


def _write_payload(path: Path, body: str) -> Path:
    payload = {
        "action": "created",
        "issue": {"number": 42, "pull_request": {}},
        "comment": {"body": body, "user": {"login": "octocat"}},
        "repository": {"full_name": REPO},
    }
    path.write_text(json.dumps(payload))
    return path


class RecordingDispatcher:
    def __init__(self) -> None:
        self.submitted: list[tuple[str, str, dict[str, str]]] = []

    def submit(self, repo_full_name: str, job_name: str, parameters: Mapping[str, str]) -> str:
        self.submitted.append((repo_full_name, job_name, dict(parameters)))
        return "101"


class FakeService:
    def __init__(self, config) -> None:
        self.config = config

    def resolve_run(self, repo: str, run_id: str) -> ResolvedRun:
        assert (repo, run_id) == (REPO, "latest")
        return ResolvedRun(run_id=11, dataset_id=110, label_values={"throughput": 2})

    def compare(self, repo: str, run_id: str) -> str:
        return "startup: SAME" if run_id == "latest" else ""


def _patch_dispatch(monkeypatch: pytest.MonkeyPatch, dispatcher: RecordingDispatcher) -> None:
    real_build = cli_main.build_action_dispatcher

    def build(config, **kwargs):
        return real_build(config, job_dispatcher=dispatcher)

    monkeypatch.setattr("perfbot.cli.main.build_action_dispatcher", build)


def test_main_without_arguments_prints_help(capsys: pytest.CaptureFixture[str]) -> None:
    assert main([]) == 0
    assert "handle-event" in capsys.readouterr().out


def test_main_unknown_command_returns_usage_error(capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["deploy"]) == 2
    assert "Usage:" in capsys.readouterr().out


def test_handle_event_schedules_job(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
    config_path: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    dispatcher = RecordingDispatcher()
    _patch_dispatch(monkeypatch, dispatcher)
    payload = _write_payload(tmp_path / "event.json", "@perfbot run bench threads=4")

    exit_code = main(["handle-event", "-c", str(config_path), "--event", "issue_comment", "--payload", str(payload)])

    assert exit_code == 0
    assert dispatcher.submitted == [(REPO, "bench", {"PR": "42", "threads": "4"})]
    assert "SUCCESS: Job 101 scheduled to run" in capsys.readouterr().out


def test_handle_event_unknown_job_exits_non_zero(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
    config_path: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    dispatcher = RecordingDispatcher()
    _patch_dispatch(monkeypatch, dispatcher)
    payload = _write_payload(tmp_path / "event.json", "@perfbot run missing")

    exit_code = main(["handle-event", "-c", str(config_path), "--event", "issue_comment", "--payload", str(payload)])

    captured = capsys.readouterr()
    assert exit_code == 1
    assert "FAILED: Job missing not found for acme/engine" in captured.out
    assert dispatcher.submitted == []


def test_handle_event_ignores_other_prompts(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
    config_path: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    _patch_dispatch(monkeypatch, RecordingDispatcher())
    payload = _write_payload(tmp_path / "event.json", "LGTM, thanks!")

    exit_code = main(["handle-event", "-c", str(config_path), "--event", "issue_comment", "--payload", str(payload)])

    assert exit_code == 0
    assert "nothing to do" in capsys.readouterr().out


def test_handle_event_rejects_invalid_payload(tmp_path: Path, config_path: Path) -> None:
    payload = tmp_path / "event.json"
    payload.write_text("{not json")

    with pytest.raises(SystemExit) as excinfo:
        main(["handle-event", "-c", str(config_path), "--event", "issue_comment", "--payload", str(payload)])

    assert excinfo.value.code == 2


def test_handle_event_requires_jenkins_section(tmp_path: Path) -> None:
    config = _write_config(tmp_path / "perfbot.yaml", "datastore:\n  url: https://horreum.example.com\n")
    payload = _write_payload(tmp_path / "event.json", "@perfbot run bench")

    with pytest.raises(SystemExit) as excinfo:
        main(["handle-event", "-c", str(config), "--event", "issue_comment", "--payload", str(payload)])

    assert excinfo.value.code == 2


def test_get_run_prints_label_values(
    monkeypatch: pytest.MonkeyPatch,
    config_path: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    monkeypatch.setattr("perfbot.cli.main.DatastoreService", FakeService)

    assert main(["get-run", "-c", str(config_path), REPO, "latest"]) == 0
    assert json.loads(capsys.readouterr().out) == {"throughput": 2}


def test_get_run_invalid_id_returns_error(config_path: Path) -> None:
    assert main(["get-run", "-c", str(config_path), REPO, "abc"]) == 1


def test_compare_prints_report(
    monkeypatch: pytest.MonkeyPatch,
    config_path: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    monkeypatch.setattr("perfbot.cli.main.DatastoreService", FakeService)

    assert main(["compare", "-c", str(config_path), REPO, "latest"]) == 0
    assert capsys.readouterr().out.strip() == "startup: SAME"


def test_compare_with_empty_report_prints_nothing(
    monkeypatch: pytest.MonkeyPatch,
    config_path: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    monkeypatch.setattr("perfbot.cli.main.DatastoreService", FakeService)

    assert main(["compare", "-c", str(config_path), REPO, "12"]) == 0
    assert capsys.readouterr().out == ""


def test_jobs_lists_configured_jobs(config_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["jobs", "-c", str(config_path), REPO]) == 0

    output = capsys.readouterr().out
    assert "bench" in output
    assert "threads" in output


def test_jobs_unknown_repository_returns_error(config_path: Path) -> None:
    assert main(["jobs", "-c", str(config_path), "acme/other"]) == 1
