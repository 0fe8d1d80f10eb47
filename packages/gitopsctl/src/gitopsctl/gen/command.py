from __future__ import annotations

import argparse

from ..catalog import discover_apps
from ..cli.output import build_base_payload, emit, emit_lines
from ..core.context import RunContext
from ..core.exit_codes import ERR_DRIFT, OK
from ..core.logging import log_event
from ..kargo import apply_pipelines, plan_pipelines, resolve_origin
from ..kargo.origin import DEFAULT_BRANCH
from ..placements import apply_placements, plan_placements

TARGETS = {
    "placements": ("placements",),
    "pipelines": ("pipelines",),
    "all": ("placements", "pipelines"),
}


def _mode(ns: argparse.Namespace) -> str:
    if ns.check:
        return "check"
    if ns.dry_run:
        return "dry-run"
    return "write"


def _render_text(payload: dict[str, object]) -> list[str]:
    lines = [f"gen {payload['target']} ({payload['mode']}): {payload['status']}"]
    for section in ("placements", "pipelines"):
        data = payload.get(section)
        if not isinstance(data, dict):
            continue
        counts = " ".join(f"{k}={len(v)}" for k, v in sorted(data.items()) if isinstance(v, list))
        lines.append(f"  {section}: {counts}")
        for key in ("pending", "removed", "missing", "changed", "stale"):
            for item in data.get(key, []):
                lines.append(f"    {key}: {item}")
    return lines


def run_gen_command(ctx: RunContext, ns: argparse.Namespace) -> int:
    target = ns.gen_cmd
    sections = TARGETS[target]
    mode = _mode(ns)
    # origin is resolved before anything is planned so a config error leaves the tree untouched
    origin = resolve_origin(ctx, ns.branch) if "pipelines" in sections else None
    apps = discover_apps(ctx)
    payload = build_base_payload(ctx)
    payload.update({"target": target, "mode": mode, "apps": len(apps)})
    drifted = False
    # every plan is built before anything is written
    plan = plan_placements(ctx.repo_root, apps) if "placements" in sections else None
    pipeline_plan = plan_pipelines(ctx.repo_root, apps, origin) if origin is not None else None

    if plan is not None:
        if mode == "write":
            payload["placements"] = apply_placements(ctx, plan)
        else:
            pending = [str(k) for k in plan.pending_writes()]
            removed = [str(k) for k in plan.removals]
            payload["placements"] = {"pending": pending, "removed": removed}
            if mode == "check":
                drifted = bool(pending or removed)

    if origin is not None and pipeline_plan is not None:
        if mode == "write":
            payload["pipelines"] = apply_pipelines(ctx, pipeline_plan)
        else:
            drift = pipeline_plan.drift()
            payload["pipelines"] = {**drift, "skipped": list(pipeline_plan.skipped)}
            if mode == "check":
                drifted = drifted or any(drift.values())
        payload["origin"] = origin.as_dict()

    if drifted:
        payload["status"] = "drift"
        log_event(ctx, "warn", "gen", "drift", target=target)
    if ctx.as_json:
        emit(payload, True)
    else:
        emit_lines(_render_text(payload))
    return ERR_DRIFT if drifted else OK


def configure_gen_parser(sub: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    p = sub.add_parser("gen", help="generate placement records and Kargo pipelines from app declarations")
    p_sub = p.add_subparsers(dest="gen_cmd", required=True)
    helps = {
        "placements": "write apps/clusters/<env>/<category>/<app> records and prune stale ones",
        "pipelines": "regenerate apps/kargo-configs/<app> resources",
        "all": "run placements then pipelines",
    }
    for name, help_text in helps.items():
        cmd = p_sub.add_parser(name, help=help_text)
        mode = cmd.add_mutually_exclusive_group()
        mode.add_argument("--check", action="store_true", help="fail with a non-zero exit if output is out of date")
        mode.add_argument("--dry-run", action="store_true", help="report planned changes without writing")
        if "pipelines" in TARGETS[name]:
            cmd.add_argument("--branch", default=DEFAULT_BRANCH, help="branch pinned in warehouse subscriptions")
