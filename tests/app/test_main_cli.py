from __future__ import annotations

import io
import json
from typing import TYPE_CHECKING

import pytest

from external_name_backup import main as main_module
from external_name_backup.adapters.crossplane import RunFunctionResponse

if TYPE_CHECKING:
    from pathlib import Path

    from external_name_backup.adapters.crossplane import RunFunctionRequest


@pytest.fixture(autouse=True)
def _quiet_entry_point(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(main_module, "load_dotenv", lambda: False)
    monkeypatch.setattr(main_module, "signal", lambda *_: None)
    monkeypatch.setattr(main_module, "configure_logging", lambda **_: None)


def test_main_cli_reads_request_file(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    captured: dict[str, RunFunctionRequest] = {}

    def fake_run(request: RunFunctionRequest) -> RunFunctionResponse:
        captured["request"] = request
        return RunFunctionResponse()

    monkeypatch.setattr(main_module, "run_function", fake_run)
    path = tmp_path / "request.json"
    path.write_text(json.dumps({"meta": {"tag": "from-file"}}))

    main_module.main(["run", "--request", str(path)])

    assert captured["request"].meta.tag == "from-file"
    output = json.loads(capsys.readouterr().out)
    assert output["meta"] == {"tag": "", "ttl": "60s"}


def test_main_cli_reads_stdin(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    captured: dict[str, RunFunctionRequest] = {}

    def fake_run(request: RunFunctionRequest) -> RunFunctionResponse:
        captured["request"] = request
        return RunFunctionResponse()

    monkeypatch.setattr(main_module, "run_function", fake_run)
    monkeypatch.setattr("sys.stdin", io.StringIO('{"meta": {"tag": "stdin"}}'))

    main_module.main(["run"])

    assert captured["request"].meta.tag == "stdin"
    assert "results" in json.loads(capsys.readouterr().out)


def test_main_cli_invalid_json(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("sys.stdin", io.StringIO("{not json"))

    with pytest.raises(SystemExit) as excinfo:
        main_module.main(["run"])

    assert excinfo.value.code == 2


def test_main_cli_missing_file(tmp_path: Path) -> None:
    with pytest.raises(SystemExit) as excinfo:
        main_module.main(["run", "--request", str(tmp_path / "missing.json")])

    assert excinfo.value.code == 2


def test_main_cli_unexpected_error(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    def failing_run(_request: RunFunctionRequest) -> RunFunctionResponse:
        raise RuntimeError("boom")

    monkeypatch.setattr(main_module, "run_function", failing_run)
    path = tmp_path / "request.json"
    path.write_text("{}")

    with pytest.raises(SystemExit) as excinfo:
        main_module.main(["run", "--request", str(path)])

    assert excinfo.value.code == 1
