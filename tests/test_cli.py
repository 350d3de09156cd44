import json

import pytest
from click.testing import CliRunner

from flipforge import cli as cli_module
from flipforge.cli import cli
from flipforge.pipeline import DomainAgent

from conftest import FakeOracle, echo_scores


@pytest.fixture
def runner(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("FLIPFORGE_CONFIG", raising=False)
    return CliRunner()


def use_fake_oracle(monkeypatch, oracle):
    monkeypatch.setattr(cli_module, "DomainAgent", lambda settings: DomainAgent(settings, oracle=oracle))


def test_generate_prints_count(runner):
    result = runner.invoke(cli, ["generate", "--a", "pay,trust", "--b", "flow,lend"])

    assert result.exit_code == 0, result.output
    assert "Total unique candidates: 3" in result.output
    assert "paylend" in result.output


def test_generate_writes_json(runner, tmp_path):
    job = tmp_path / "job.yaml"
    job.write_text(
        "packs:\n  A: [pay, go]\n  B: [flow]\n"
        "multipliers:\n  suffixes: [ly]\n"
        "templates: [A+B, A+B+suffix]\n"
        "constraints:\n  maxLen: 8\n"
    )

    result = runner.invoke(cli, ["generate", "--job", str(job), "--output", "out/candidates.json"])

    assert result.exit_code == 0, result.output
    data = json.loads((tmp_path / "out" / "candidates.json").read_text())
    assert [d["domain"] for d in data] == ["payflow", "goflow", "goflowly"]
    assert data[2]["sources"] == "A:go, B:flow, suf:ly"


def test_generate_reports_candidate_cap(runner, tmp_path):
    (tmp_path / "config").mkdir()
    (tmp_path / "config" / "config.yaml").write_text("pipeline:\n  max_candidates: 1\n")

    result = runner.invoke(cli, ["generate", "--a", "pay,go", "--b", "flow"])

    assert result.exit_code == 1
    assert "Too many candidates" in result.output


def test_presets_lists_personas(runner):
    result = runner.invoke(cli, ["presets"])

    assert result.exit_code == 0, result.output
    assert "lenders" in result.output
    assert "Niche modes:" in result.output


def test_check_with_mock_checker(runner, tmp_path):
    result = runner.invoke(cli, ["check", "payflow", "--tlds", "com,io", "--seed", "3", "-o", "avail.json"])

    assert result.exit_code == 0, result.output
    data = json.loads((tmp_path / "avail.json").read_text())
    assert [d["domain"] for d in data] == ["payflow.com", "payflow.io"]
    assert {d["method"] for d in data} == {"mock"}


def test_hunt_without_api_key_exits(runner):
    result = runner.invoke(cli, ["hunt", "--a", "pay", "--b", "flow"], env={"OPENAI_API_KEY": None})

    assert result.exit_code == 1
    assert "API key not configured" in result.output


def test_hunt_writes_ranked_results(runner, tmp_path, monkeypatch):
    use_fake_oracle(monkeypatch, FakeOracle([echo_scores(lambda d: 8.0 if d == "goflow" else 5.0)]))

    result = runner.invoke(
        cli,
        ["hunt", "--a", "pay,go", "--b", "flow", "--top-k", "1", "--check", "--seed", "1", "-o", "run.json"],
        env={"OPENAI_API_KEY": "test-key"},
    )

    assert result.exit_code == 0, result.output
    assert "Generated 2 unique candidates" in result.output
    payload = json.loads((tmp_path / "run.json").read_text())
    assert payload["count"] == 1
    assert payload["totalGenerated"] == 2
    assert payload["results"][0]["domain"] == "goflow"
    assert payload["results"][0]["bucket"] == "FAST-FLIP"
    assert payload["results"][0]["availability"]["domain"] == "goflow.com"


def test_score_command(runner, tmp_path, monkeypatch):
    body = json.dumps([{"domain": "payflow.com", "score": 7.1, "bucket": "FAST-FLIP", "reason": "short", "use_case": "pay"}])
    use_fake_oracle(monkeypatch, FakeOracle([body]))

    result = runner.invoke(cli, ["score", "payflow.com", "-o", "scores.json"], env={"OPENAI_API_KEY": "test-key"})

    assert result.exit_code == 0, result.output
    data = json.loads((tmp_path / "scores.json").read_text())
    assert data[0]["score"] == 7.1


def test_score_without_domains_exits(runner):
    result = runner.invoke(cli, ["score"])

    assert result.exit_code == 1
    assert "No domains provided" in result.output
