from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable

from ..catalog.models import CATEGORIES, Application
from ..core.context import RunContext
from ..core.fs import list_dirs, read_text_or_none, remove_if_empty, remove_tree, write_text
from ..core.logging import log_event
from ..render import provenance_header, render_document

PLACEMENT_ROOT = Path("apps") / "clusters"
RECORD_FILE = "app-config.yaml"
REGENERATE = "gitopsctl gen placements"


@dataclass(frozen=True, order=True)
class PlacementKey:
    environment: str
    category: str
    app: str

    @property
    def relative_dir(self) -> Path:
        return Path(self.environment) / self.category / self.app

    def __str__(self) -> str:
        return self.relative_dir.as_posix()


@dataclass
class PlacementPlan:
    root: Path
    writes: dict[PlacementKey, str] = field(default_factory=dict)
    removals: list[PlacementKey] = field(default_factory=list)

    def record_path(self, key: PlacementKey) -> Path:
        return self.root / key.relative_dir / RECORD_FILE

    def pending_writes(self) -> list[PlacementKey]:
        """Records whose on-disk content differs from the desired content."""
        return [key for key, content in sorted(self.writes.items()) if read_text_or_none(self.record_path(key)) != content]

    @property
    def in_sync(self) -> bool:
        return not self.removals and not self.pending_writes()

    def structure(self) -> dict[str, dict[str, list[str]]]:
        out: dict[str, dict[str, list[str]]] = {}
        for key in sorted(self.writes):
            out.setdefault(key.environment, {}).setdefault(key.category, []).append(key.app)
        return out


def render_record(app: Application) -> str:
    header = provenance_header(app.declaration_path, REGENERATE)
    return render_document(header, {"chartPath": app.source_path})


def desired_placements(apps: Iterable[Application]) -> dict[PlacementKey, Application]:
    desired: dict[PlacementKey, Application] = {}
    for app in apps:
        for env in app.sorted_targets():
            desired[PlacementKey(env, app.category, app.name)] = app
    return desired


def actual_placements(root: Path) -> set[PlacementKey]:
    found: set[PlacementKey] = set()
    for env_dir in list_dirs(root):
        for category in CATEGORIES:
            for app_dir in list_dirs(env_dir / category):
                found.add(PlacementKey(env_dir.name, category, app_dir.name))
    return found


def plan_placements(repo_root: Path, apps: Iterable[Application]) -> PlacementPlan:
    root = repo_root / PLACEMENT_ROOT
    desired = desired_placements(apps)
    actual = actual_placements(root)
    return PlacementPlan(
        root=root,
        writes={key: render_record(app) for key, app in desired.items()},
        removals=sorted(actual - desired.keys()),
    )


def _prune_empty_parents(root: Path) -> list[str]:
    removed: list[str] = []
    for env_dir in list_dirs(root):
        for category in CATEGORIES:
            if remove_if_empty(env_dir / category):
                removed.append(f"{env_dir.name}/{category}")
        if remove_if_empty(env_dir):
            removed.append(env_dir.name)
    return removed


def apply_placements(ctx: RunContext, plan: PlacementPlan) -> dict[str, list[str]]:
    written: list[str] = []
    for key in plan.pending_writes():
        path = write_text(plan.record_path(key), plan.writes[key])
        written.append(str(key))
        log_event(ctx, "debug", "placements", "write", path=path.relative_to(ctx.repo_root).as_posix())
    removed: list[str] = []
    for key in plan.removals:
        if remove_tree(plan.root / key.relative_dir):
            removed.append(str(key))
            log_event(ctx, "info", "placements", "prune", placement=str(key))
    emptied = _prune_empty_parents(plan.root)
    touched = set(written)
    unchanged = sorted(str(key) for key in plan.writes if str(key) not in touched)
    log_event(ctx, "info", "placements", "done", written=len(written), unchanged=len(unchanged), removed=len(removed))
    return {"written": written, "unchanged": unchanged, "removed": removed, "emptied": emptied}
