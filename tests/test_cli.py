"""Tests for psi_report/cli.py"""

import pytest
from click.testing import CliRunner

from psi_report.cli import cli
from psi_report.client import PSI_URL

GOOD = "https://www.example.org/"
BAD = "https://www.example.org/broken"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _psi_response(url: str) -> dict:
    return {
        "id": url,
        "lighthouseResult": {
            "categories": {
                "performance": {
                    "id": "performance", "title": "Performance", "score": 0.87,
                    "auditRefs": [{"id": "unused-css-rules"}],
                },
                "seo": {"id": "seo", "title": "SEO", "score": 1, "auditRefs": []},
            },
            "audits": {
                "unused-css-rules": {
                    "title": "Reduce unused CSS", "score": 0.45,
                    "displayValue": "Potential savings of 12 KiB",
                },
            },
        },
    }


def _mock_psi(requests_mock, failing: tuple[str, ...] = ()) -> None:
    def callback(request, context):
        url = request.qs["url"][0]
        if url in failing:
            context.status_code = 500
            return {"error": {"code": 500, "message": "Lighthouse returned error"}}
        return _psi_response(url)

    requests_mock.get(PSI_URL, json=callback)


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture(autouse=True)
def _no_env_key(monkeypatch):
    monkeypatch.delenv("PSI_API_KEY", raising=False)


# ---------------------------------------------------------------------------
# run
# ---------------------------------------------------------------------------

def test_run_prints_summary_and_report(runner, requests_mock):
    _mock_psi(requests_mock)
    result = runner.invoke(cli, ["run", GOOD])

    assert result.exit_code == 0, result.output
    lines = result.output.splitlines()
    assert lines[0] == "URL  Perf  SEO"
    assert lines[1] == "/      87  100"
    assert " 45 Reduce unused CSS: Potential savings of 12 KiB" in lines


def test_run_failed_url_keeps_its_row(runner, requests_mock):
    _mock_psi(requests_mock, failing=(BAD,))
    result = runner.invoke(cli, ["run", "--retries", "1", GOOD, BAD])

    assert result.exit_code == 0
    assert "/broken" in result.output
    assert f"Failed analyzing {BAD} after 2 attempt(s)" in result.output
    assert requests_mock.call_count == 3


def test_run_exits_1_when_every_url_fails(runner, requests_mock):
    _mock_psi(requests_mock, failing=(BAD,))
    result = runner.invoke(cli, ["run", "--retries", "0", BAD])
    assert result.exit_code == 1


def test_run_options_reach_the_api(runner, requests_mock):
    _mock_psi(requests_mock)
    result = runner.invoke(cli, ["run", "--mobile", "--key", "AIza_cli", GOOD])

    assert result.exit_code == 0
    qs = requests_mock.last_request.qs
    assert qs["strategy"] == ["mobile"]
    assert qs["key"] == ["aiza_cli"]


def test_run_desktop_flag_overrides_config_device(runner, requests_mock, tmp_path):
    _mock_psi(requests_mock)
    config = tmp_path / "psi-config.yaml"
    config.write_text("device: mobile\n", encoding="utf-8")

    result = runner.invoke(cli, ["--config", str(config), "run", "--desktop", GOOD])

    assert result.exit_code == 0
    assert requests_mock.last_request.qs["strategy"] == ["desktop"]


def test_run_keeps_config_device_without_flag(runner, requests_mock, tmp_path):
    _mock_psi(requests_mock)
    config = tmp_path / "psi-config.yaml"
    config.write_text("device: mobile\n", encoding="utf-8")

    result = runner.invoke(cli, ["--config", str(config), "run", GOOD])

    assert result.exit_code == 0
    assert requests_mock.last_request.qs["strategy"] == ["mobile"]


def test_run_uses_config_urls(runner, requests_mock, tmp_path):
    _mock_psi(requests_mock)
    config = tmp_path / "psi-config.yaml"
    config.write_text(f'urls:\n  - "{GOOD}"\nreport:\n  full_urls: true\n', encoding="utf-8")

    result = runner.invoke(cli, ["--config", str(config), "run"])

    assert result.exit_code == 0
    assert result.output.splitlines()[1].startswith(GOOD)


def test_run_without_urls_is_usage_error(runner):
    result = runner.invoke(cli, ["run"])
    assert result.exit_code == 2
    assert "No URLs" in result.output


def test_run_zero_workers_is_configuration_error(runner, requests_mock):
    _mock_psi(requests_mock)
    result = runner.invoke(cli, ["run", "--workers", "0", GOOD])
    assert result.exit_code == 1
    assert "Configuration error" in result.output
    assert requests_mock.call_count == 0


def test_run_missing_config_file(runner, tmp_path):
    result = runner.invoke(cli, ["--config", str(tmp_path / "nope.yaml"), "run", GOOD])
    assert result.exit_code == 1
    assert "Configuration error" in result.output


def test_run_writes_output_file(runner, requests_mock, tmp_path):
    _mock_psi(requests_mock)
    out = tmp_path / "report.txt"
    result = runner.invoke(cli, ["--output", str(out), "run", "--audits", "none", GOOD])

    assert result.exit_code == 0
    text = out.read_text(encoding="utf-8")
    assert text.startswith("URL  Perf  SEO\n")
    assert "Reduce unused CSS" not in text


# ---------------------------------------------------------------------------
# init
# ---------------------------------------------------------------------------

def test_init_writes_template(runner, tmp_path):
    out = tmp_path / "psi-config.yaml"
    result = runner.invoke(cli, ["init", "--output", str(out)])
    assert result.exit_code == 0
    assert out.exists()


def test_init_refuses_to_overwrite(runner, tmp_path):
    out = tmp_path / "psi-config.yaml"
    out.write_text("api_key: secret\n")
    result = runner.invoke(cli, ["init", "--output", str(out)])
    assert result.exit_code == 1
    assert out.read_text() == "api_key: secret\n"
