from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from ..core.context import RunContext
from ..core.errors import ScriptError
from ..core.exit_codes import ERR_CONFIG
from ..core.fs import list_dirs
from ..core.logging import log_event
from ..core.schema import schema_errors, validate_payload
from ..topology import DEFAULT_TOPOLOGY, PromotionTopology
from .models import CATEGORIES, DECLARATION_FILE, SELF_MANAGED, TARGETS_FIELD, Application, Category


def load_declaration(path: Path) -> dict[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ScriptError(f"{path}: unreadable declaration: {exc}", ERR_CONFIG, kind="malformed_declaration") from exc
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ScriptError(f"{path}: malformed declaration: {exc}", ERR_CONFIG, kind="malformed_declaration") from exc
    validate_payload(data, "app-config.schema.json", str(path))
    return data or {}


def parse_targets(
    ctx: RunContext,
    path: Path,
    data: dict[str, Any],
    topology: PromotionTopology = DEFAULT_TOPOLOGY,
) -> frozenset[str]:
    raw = data.get(TARGETS_FIELD)
    if raw is None:
        return frozenset()
    if schema_errors(raw, "target-clusters.schema.json"):
        log_event(ctx, "warn", "discovery", "ignore-targets", file=path, reason=f"`{TARGETS_FIELD}` is not a list of names")
        return frozenset()
    unknown = sorted(set(raw) - topology.environments)
    if unknown:
        raise ScriptError(
            f"{path}: unknown environments {unknown}; expected a subset of {sorted(topology.environments)}",
            ERR_CONFIG,
            kind="unknown_environment",
        )
    return frozenset(raw)


def discover_category(
    ctx: RunContext,
    category: Category,
    topology: PromotionTopology = DEFAULT_TOPOLOGY,
) -> list[Application]:
    apps: list[Application] = []
    excluded = SELF_MANAGED.get(category, frozenset())
    for app_dir in list_dirs(ctx.apps_root / category):
        name = app_dir.name
        if name in excluded:
            continue
        declaration = app_dir / DECLARATION_FILE
        if not declaration.is_file():
            log_event(ctx, "info", "discovery", "skip", app=f"{category}/{name}", reason=f"no {DECLARATION_FILE}")
            continue
        targets = parse_targets(ctx, declaration, load_declaration(declaration), topology)
        app = Application(
            name=name,
            category=category,
            source_path=f"apps/{category}/{name}",
            targets=targets,
        )
        log_event(ctx, "info", "discovery", "found", app=app.key, targets=",".join(app.sorted_targets()))
        apps.append(app)
    return apps


def discover_apps(ctx: RunContext, topology: PromotionTopology = DEFAULT_TOPOLOGY) -> list[Application]:
    apps: list[Application] = []
    for category in CATEGORIES:
        apps.extend(discover_category(ctx, category, topology))
    log_event(ctx, "info", "discovery", "done", count=len(apps))
    return apps
