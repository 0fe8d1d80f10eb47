from __future__ import annotations

import json
import os
import subprocess
import sys
from pathlib import Path

import pytest

from gitopsctl.cli.main import main
from gitopsctl.core.exit_codes import ERR_CONFIG, ERR_DRIFT, ERR_USAGE, OK

HTTPS = "https://github.com/acme/gitops-demo.git"
SRC = Path(__file__).resolve().parents[1] / "src"


def _run(repo: Path, *args: str) -> int:
    return main(["--repo-root", str(repo), "--quiet", *args])


@pytest.fixture
def origin(monkeypatch: pytest.MonkeyPatch) -> str:
    monkeypatch.setenv("GIT_REPO_URL", HTTPS)
    return HTTPS


def test_gen_all_then_check_is_clean(repo: Path, declare, origin: str, capsys: pytest.CaptureFixture[str]) -> None:
    declare("workloads", "echo", ["test", "dev", "prod-us"])
    assert _run(repo, "gen", "all") == OK
    assert (repo / "apps/clusters/dev/workloads/echo/app-config.yaml").is_file()
    assert (repo / "apps/kargo-configs/echo/stages.yaml").is_file()
    capsys.readouterr()
    assert _run(repo, "--json", "gen", "all", "--check") == OK
    payload = json.loads(capsys.readouterr().out)
    assert payload["status"] == "ok"
    assert payload["mode"] == "check"
    assert payload["placements"] == {"pending": [], "removed": []}


def test_check_detects_drift_without_writing(repo: Path, declare, origin: str, capsys: pytest.CaptureFixture[str]) -> None:
    declare("workloads", "echo", ["prod-us", "prod-au"])
    assert _run(repo, "gen", "all") == OK
    declare("workloads", "echo", ["prod-us"])
    capsys.readouterr()
    assert _run(repo, "--json", "gen", "all", "--check") == ERR_DRIFT
    payload = json.loads(capsys.readouterr().out)
    assert payload["status"] == "drift"
    assert payload["placements"]["removed"] == ["prod-au/workloads/echo"]
    assert "echo/stages.yaml" in payload["pipelines"]["changed"]
    assert (repo / "apps/clusters/prod-au/workloads/echo").is_dir()


def test_dry_run_touches_nothing(repo: Path, declare, origin: str) -> None:
    declare("workloads", "echo", ["dev"])
    assert _run(repo, "gen", "all", "--dry-run") == OK
    assert not (repo / "apps/clusters").exists()
    assert not (repo / "apps/kargo-configs").exists()


def test_placements_do_not_need_an_origin(repo: Path, declare) -> None:
    declare("workloads", "echo", ["dev"])
    assert _run(repo, "gen", "placements") == OK
    assert (repo / "apps/clusters/dev/workloads/echo").is_dir()


def test_missing_origin_aborts_before_writing(repo: Path, declare, capsys: pytest.CaptureFixture[str]) -> None:
    declare("workloads", "echo", ["dev"])
    assert _run(repo, "--json", "gen", "all") == ERR_CONFIG
    err = json.loads(capsys.readouterr().err)
    assert err["status"] == "error"
    assert err["errors"][0]["kind"] == "missing_origin"
    assert not (repo / "apps/clusters").exists()


def test_malformed_declaration_exit_code(repo: Path, declare, origin: str, capsys: pytest.CaptureFixture[str]) -> None:
    declare("workloads", "echo", raw="targetClusters: [dev\n")
    assert _run(repo, "gen", "pipelines") == ERR_CONFIG
    assert "malformed declaration" in capsys.readouterr().err


def test_name_clash_leaves_no_partial_output(repo: Path, declare, origin: str, capsys: pytest.CaptureFixture[str]) -> None:
    declare("workloads", "registry", ["dev"])
    declare("infra", "registry", ["infra"])
    assert _run(repo, "--json", "gen", "all") == ERR_CONFIG
    assert json.loads(capsys.readouterr().err)["errors"][0]["kind"] == "duplicate_app_name"
    assert not (repo / "apps/clusters").exists()
    assert not (repo / "apps/kargo-configs").exists()


def test_binary_credentials_with_env_origin(repo: Path, declare, origin: str) -> None:
    declare("workloads", "echo", ["dev"])
    (repo / "values-credentials.yaml").write_bytes(b"\xff\xfe\x00")
    assert _run(repo, "gen", "pipelines") == OK
    assert (repo / "apps/kargo-configs/echo/warehouse.yaml").is_file()


def test_undecodable_declaration_is_a_config_error(repo: Path, declare, capsys: pytest.CaptureFixture[str]) -> None:
    declare("workloads", "echo", raw="").write_bytes(b"targetClusters: [\xff]\n")
    assert _run(repo, "gen", "placements") == ERR_CONFIG
    assert "apps/workloads/echo/app-config.yaml" in capsys.readouterr().err


def test_apps_list_and_stages(repo: Path, declare, capsys: pytest.CaptureFixture[str]) -> None:
    declare("workloads", "echo", ["test", "staging", "prod-eu"])
    declare("infra", "kargo", ["infra"])
    assert _run(repo, "--json", "apps", "list") == OK
    listed = json.loads(capsys.readouterr().out)["apps"]
    assert [a["name"] for a in listed] == ["echo", "kargo"]
    assert listed[0]["targets"] == ["prod-eu", "staging", "test"]

    assert _run(repo, "--json", "apps", "stages", "echo") == OK
    stages = json.loads(capsys.readouterr().out)["stages"]
    assert stages == [
        {"name": "test", "upstream": "", "auto_promotion": False},
        {"name": "staging", "upstream": "test", "auto_promotion": True},
        {"name": "prod-eu", "upstream": "staging", "auto_promotion": True},
    ]

    assert _run(repo, "apps", "stages", "workloads/echo") == OK
    text = capsys.readouterr().out
    assert "  test <- warehouse (manual)" in text
    assert "  prod-eu <- staging (auto)" in text


def test_unknown_app_is_a_usage_error(repo: Path, declare) -> None:
    declare("workloads", "echo", ["dev"])
    assert _run(repo, "apps", "stages", "nope") == ERR_USAGE


def test_plan_prints_expected_structure(repo: Path, declare, capsys: pytest.CaptureFixture[str]) -> None:
    declare("workloads", "echo", ["test", "dev"])
    declare("workloads", "api", ["dev"])
    assert _run(repo, "plan") == OK
    assert capsys.readouterr().out.splitlines() == [
        "Expected structure:",
        "  dev/workloads: api, echo",
        "  test/workloads: echo",
    ]


def test_repo_root_not_found(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["--repo-root", str(tmp_path), "plan"]) == ERR_CONFIG
    assert "unable to resolve repository root" in capsys.readouterr().err


def test_version(capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["--json", "version"]) == OK
    assert json.loads(capsys.readouterr().out)["tool"] == "gitopsctl"


@pytest.mark.integration
def test_module_entrypoint_runs(repo: Path, declare) -> None:
    declare("workloads", "echo", ["test", "prod-us"])
    env = os.environ.copy()
    env["PYTHONPATH"] = str(SRC)
    env["GIT_REPO_URL"] = HTTPS
    proc = subprocess.run(
        [sys.executable, "-m", "gitopsctl", "--log-json", "gen", "all"],
        cwd=repo / "apps/workloads/echo",
        env=env,
        text=True,
        capture_output=True,
        check=False,
    )
    assert proc.returncode == 0, proc.stderr
    assert "gen all (write): ok" in proc.stdout
    events = [json.loads(line) for line in proc.stderr.splitlines() if line.strip()]
    assert any(e["component"] == "discovery" and e["action"] == "found" for e in events)
    assert (repo / "apps/kargo-configs/echo/warehouse.yaml").is_file()
