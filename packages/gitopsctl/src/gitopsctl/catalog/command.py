from __future__ import annotations

import argparse

from ..cli.output import build_base_payload, emit, emit_lines
from ..core.context import RunContext
from ..core.errors import ScriptError
from ..core.exit_codes import ERR_USAGE, OK
from ..stages import auto_promoted, build_stage_graph
from .discovery import discover_apps
from .models import Application


def _find(apps: list[Application], ref: str) -> Application:
    matches = [app for app in apps if ref in {app.name, app.key}]
    if not matches:
        raise ScriptError(f"unknown app `{ref}`", ERR_USAGE, kind="unknown_app")
    if len(matches) > 1:
        keys = ", ".join(app.key for app in matches)
        raise ScriptError(f"ambiguous app `{ref}`: {keys}; use <category>/<name>", ERR_USAGE, kind="ambiguous_app")
    return matches[0]


def _list(ctx: RunContext, apps: list[Application]) -> int:
    if ctx.as_json:
        payload = build_base_payload(ctx)
        payload["apps"] = [app.as_dict() for app in apps]
        emit(payload, True)
        return OK
    emit_lines([f"{app.key}\t{app.source_path}\t{','.join(app.sorted_targets()) or '-'}" for app in apps])
    return OK


def _stages(ctx: RunContext, apps: list[Application], ref: str) -> int:
    app = _find(apps, ref)
    stages = build_stage_graph(app.targets)
    auto = {stage.name for stage in auto_promoted(stages)}
    if ctx.as_json:
        payload = build_base_payload(ctx)
        payload["app"] = app.as_dict()
        payload["stages"] = [{**stage.as_dict(), "auto_promotion": stage.name in auto} for stage in stages]
        emit(payload, True)
        return OK
    lines = [f"{app.key}:"]
    for stage in stages:
        source = f"<- {stage.upstream}" if stage.upstream else "<- warehouse"
        trigger = "auto" if stage.name in auto else "manual"
        lines.append(f"  {stage.name} {source} ({trigger})")
    emit_lines(lines)
    return OK


def run_apps_command(ctx: RunContext, ns: argparse.Namespace) -> int:
    apps = discover_apps(ctx)
    if ns.apps_cmd == "list":
        return _list(ctx, apps)
    if ns.apps_cmd == "stages":
        return _stages(ctx, apps, ns.app)
    return ERR_USAGE


def configure_apps_parser(sub: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    p = sub.add_parser("apps", help="inspect declared applications")
    p_sub = p.add_subparsers(dest="apps_cmd", required=True)
    p_sub.add_parser("list", help="list discovered applications and their target environments")
    stages_p = p_sub.add_parser("stages", help="show the promotion graph computed for one application")
    stages_p.add_argument("app", help="application name or <category>/<name>")
