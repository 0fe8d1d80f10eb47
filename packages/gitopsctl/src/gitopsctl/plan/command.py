from __future__ import annotations

import argparse

from ..catalog import discover_apps
from ..cli.output import build_base_payload, emit, emit_lines
from ..core.context import RunContext
from ..core.exit_codes import OK
from ..placements import plan_placements


def run_plan_command(ctx: RunContext, _ns: argparse.Namespace) -> int:
    plan = plan_placements(ctx.repo_root, discover_apps(ctx))
    structure = plan.structure()
    if ctx.as_json:
        payload = build_base_payload(ctx)
        payload["structure"] = structure
        payload["stale"] = [str(key) for key in plan.removals]
        emit(payload, True)
        return OK
    lines = ["Expected structure:"]
    for env, categories in sorted(structure.items()):
        for category, apps in sorted(categories.items()):
            lines.append(f"  {env}/{category}: {', '.join(apps)}")
    for key in plan.removals:
        lines.append(f"  stale: {key}")
    emit_lines(lines)
    return OK


def configure_plan_parser(sub: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    sub.add_parser("plan", help="print the expected per-cluster placement structure")
