import json

import pytest

from src.functions.claim_verification.scripts import verify_cli

PAGE_TEXT = (
    "The unemployment rate fell to 3.5% in March 2023, according to the Labor Department. "
    "The city council approved a budget of $2.1 billion on June 5, 2023 after a long debate."
)


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)


def test_offline_run_prints_result(capsys):
    exit_code = verify_cli.main(["--text", PAGE_TEXT, "--offline", "--max-claims", "1", "--log-level", "ERROR"])

    result = json.loads(capsys.readouterr().out)
    assert exit_code == 0
    assert result["status"] == "complete"
    assert len(result["claims"]) == 1


def test_stream_mode_prints_event_lines(tmp_path, capsys):
    page = tmp_path / "page.txt"
    page.write_text(PAGE_TEXT, encoding="utf-8")

    exit_code = verify_cli.main(["--text-file", str(page), "--offline", "--stream", "--log-level", "ERROR"])

    events = [json.loads(line) for line in capsys.readouterr().out.splitlines() if line.strip()]
    assert exit_code == 0
    assert events[-1]["type"] == "complete"


def test_invalid_claim_limit_exits_with_usage_error():
    with pytest.raises(SystemExit):
        verify_cli.main(["--text", PAGE_TEXT, "--offline", "--max-claims", "40"])
