from __future__ import annotations

import socket
from pathlib import Path
from typing import Callable

import pytest
import yaml
from hypothesis import settings
from hypothesis.database import DirectoryBasedExampleDatabase

from gitopsctl.core.context import RunContext

_ALLOWED_MARKERS = {"unit", "integration", "slow"}

_ROOT = Path(__file__).resolve().parents[3]
_HYPOTHESIS_DB = _ROOT / ".hypothesis/examples"
settings.register_profile("gitopsctl", database=DirectoryBasedExampleDatabase(_HYPOTHESIS_DB), deadline=None)
settings.load_profile("gitopsctl")


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        names = {mark.name for mark in item.iter_markers()}
        if not names.intersection(_ALLOWED_MARKERS):
            item.add_marker("unit")


@pytest.fixture(autouse=True)
def no_network_for_unit(request: pytest.FixtureRequest, monkeypatch: pytest.MonkeyPatch) -> None:
    if request.node.get_closest_marker("integration") or request.node.get_closest_marker("slow"):
        return

    def _blocked(*_args: object, **_kwargs: object) -> socket.socket:
        raise RuntimeError("network disabled in unit tests")

    def _blocked_connect(*_args: object, **_kwargs: object) -> None:
        raise RuntimeError("network disabled in unit tests")

    monkeypatch.setattr(socket, "create_connection", _blocked)
    monkeypatch.setattr(socket.socket, "connect", _blocked_connect)


@pytest.fixture(autouse=True)
def clean_origin_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("GIT_REPO_URL", "KARGO_GIT_REPO_URL", "RUN_ID", "CI"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def repo(tmp_path: Path) -> Path:
    root = tmp_path / "repo"
    (root / "apps/workloads").mkdir(parents=True)
    (root / "apps/infra/argocd").mkdir(parents=True)
    return root


@pytest.fixture
def declare(repo: Path) -> Callable[..., Path]:
    def _declare(category: str, name: str, targets: object = None, raw: str | None = None) -> Path:
        app_dir = repo / "apps" / category / name
        app_dir.mkdir(parents=True, exist_ok=True)
        path = app_dir / "app-config.yaml"
        if raw is not None:
            path.write_text(raw, encoding="utf-8")
        else:
            path.write_text(yaml.safe_dump({"targetClusters": targets}), encoding="utf-8")
        return path

    return _declare


@pytest.fixture
def ctx(repo: Path) -> RunContext:
    return RunContext.from_args("pytest-run", str(repo), quiet=True)


@pytest.fixture
def credentials(repo: Path) -> Callable[[dict[str, object]], Path]:
    def _write(data: dict[str, object]) -> Path:
        path = repo / "values-credentials.yaml"
        path.write_text(yaml.safe_dump(data), encoding="utf-8")
        return path

    return _write
