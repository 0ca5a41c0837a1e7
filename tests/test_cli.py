import json
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from conftest import installed
from unity_project_setup import cli
from unity_project_setup.packages import CompletedOperation, PackageReconciler, TickLoop


CATALOG_URL = "https://catalog.example/raw"


def _json_response(payload, status=200):
    response = MagicMock()
    response.status_code = status
    response.text = json.dumps(payload)
    response.json.return_value = payload
    return response


@pytest.fixture
def project(tmp_path: Path) -> Path:
    root = tmp_path / "MyGame"
    (root / "Packages").mkdir(parents=True)
    (root / "Packages" / "manifest.json").write_text(
        json.dumps({"dependencies": {"com.unity.ugui": "1.0.0", "com.unity.textmeshpro": "3.0.6"}}),
        encoding="utf-8",
    )
    return root


@pytest.fixture
def fake_http(monkeypatch):
    monkeypatch.setenv("CATALOG_URL", CATALOG_URL)
    monkeypatch.setenv("TICK_INTERVAL", "0.01")

    def get(url, timeout=None):
        if url == CATALOG_URL:
            return _json_response({"packages": ["com.unity.ugui", "com.unity.cinemachine", "com.unity.inputsystem"]})
        if url.endswith("/com.unity.cinemachine"):
            return _json_response({"dist-tags": {"latest": "2.10.1"}})
        return _json_response({}, status=404)

    with patch("requests.get", side_effect=get) as mock_get:
        yield mock_get


def _deps(project: Path):
    return json.loads((project / "Packages" / "manifest.json").read_text(encoding="utf-8"))["dependencies"]


def test_folders_command(tmp_path: Path, capsys):
    assert cli.main(["folders", str(tmp_path)]) == 0
    assert (tmp_path / "Assets" / "Art" / "Materials").is_dir()
    assert "created" in capsys.readouterr().out

    assert cli.main(["folders", str(tmp_path)]) == 0
    assert "All folders already exist." in capsys.readouterr().out


def test_folders_command_reports_filesystem_errors(tmp_path: Path):
    (tmp_path / "Assets").write_text("not a folder", encoding="utf-8")
    assert cli.main(["folders", str(tmp_path)]) == 1


def test_packages_list(project, fake_http, capsys):
    assert cli.main(["packages", str(project), "--list"]) == 0
    out = capsys.readouterr().out
    assert "[x] com.unity.textmeshpro" in out
    assert "[ ] com.unity.cinemachine" in out
    assert _deps(project) == {"com.unity.ugui": "1.0.0", "com.unity.textmeshpro": "3.0.6"}


def test_packages_batch_add_and_remove(project, fake_http):
    code = cli.main(["packages", str(project), "--add", "com.unity.cinemachine", "--remove", "com.unity.textmeshpro"])
    assert code == 0
    assert _deps(project) == {"com.unity.ugui": "1.0.0", "com.unity.cinemachine": "2.10.1"}


def test_packages_batch_unknown_name(project, fake_http):
    assert cli.main(["packages", str(project), "--add", "com.unity.ugui"]) == 2


def test_packages_batch_commit_failure(project, fake_http):
    assert cli.main(["packages", str(project), "--add", "com.unity.inputsystem"]) == 1
    assert "com.unity.inputsystem" not in _deps(project)


def test_packages_missing_manifest_closes_session(tmp_path, fake_http):
    assert cli.main(["packages", str(tmp_path), "--list"]) == 1


class ScriptedInput:
    def __init__(self, *lines):
        self.lines = list(lines)

    def __call__(self, prompt=""):
        if not self.lines:
            raise EOFError
        return self.lines.pop(0)


class RecordingManager:
    def __init__(self):
        self.calls = []

    def list_installed(self):
        return CompletedOperation(installed("b"))

    def add_and_remove(self, to_add, to_remove):
        self.calls.append((to_add, to_remove))
        return CompletedOperation(None)


def test_interactive_session(capsys):
    pm = RecordingManager()
    r = PackageReconciler(pm, lambda: CompletedOperation(["a", "b", "c"]))
    code = cli.run_interactive(r, TickLoop(0.001), read=ScriptedInput("a 2", "x", "c", "r 1", "q"))
    assert code == 0
    assert pm.calls == [(["c"], None)]
    out = capsys.readouterr().out
    assert "error: Unknown command" in out
    assert "[ ] b" in out


def test_folders_command_rejects_missing_project(tmp_path: Path):
    assert cli.main(["folders", str(tmp_path / "Gmae")]) == 1
    assert not (tmp_path / "Gmae").exists()


def test_unwritable_log_file_falls_back_to_console(tmp_path: Path, monkeypatch, capsys):
    (tmp_path / "logs").write_text("not a folder", encoding="utf-8")
    monkeypatch.setenv("LOG_FILE", str(tmp_path / "logs" / "app.log"))
    assert cli.main(["folders", str(tmp_path)]) == 0
    assert (tmp_path / "Assets" / "Scenes").is_dir()
    assert "Cannot write log file" in capsys.readouterr().err
