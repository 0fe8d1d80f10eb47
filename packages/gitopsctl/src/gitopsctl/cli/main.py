from __future__ import annotations

import argparse
import sys

from .. import __version__
from ..catalog.command import configure_apps_parser, run_apps_command
from ..core.context import RunContext
from ..core.env import has
from ..core.errors import ScriptError
from ..core.exit_codes import ERR_INTERNAL, ERR_USAGE, OK
from ..core.logging import log_event
from ..gen.command import configure_gen_parser, run_gen_command
from ..plan.command import configure_plan_parser, run_plan_command
from .output import TOOL, emit, render_error, resolve_output_format

RUNNERS = {
    "gen": run_gen_command,
    "apps": run_apps_command,
    "plan": run_plan_command,
}


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog=TOOL, description="derive cluster placements and Kargo pipelines from app declarations")
    p.add_argument("--version", action="version", version=f"{TOOL} {__version__}")
    p.add_argument("--json", action="store_true", help="emit JSON output")
    p.add_argument("--format", choices=["text", "json"], default=None, help="output format")
    p.add_argument("--repo-root", help="repository root (defaults to the nearest parent containing apps/)")
    p.add_argument("--run-id", help="run identifier attached to log events")
    p.add_argument("--log-json", action="store_true", help="emit log events as JSON lines on stderr")
    vg = p.add_mutually_exclusive_group()
    vg.add_argument("--verbose", action="store_true", help="enable debug log events")
    vg.add_argument("--quiet", action="store_true", help="only emit warnings and errors")
    sub = p.add_subparsers(dest="cmd", required=True)

    sub.add_parser("version", help="print tool version")
    configure_gen_parser(sub)
    configure_apps_parser(sub)
    configure_plan_parser(sub)
    return p


def main(argv: list[str] | None = None) -> int:
    p = build_parser()
    ns = p.parse_args(argv)
    fmt = resolve_output_format(cli_json=ns.json, cli_format=ns.format, ci_present=has("CI"))
    as_json = fmt == "json"
    if ns.cmd == "version":
        emit({"schema_version": 1, "tool": TOOL, "status": "ok", "version": __version__}, as_json)
        return OK
    try:
        ctx = RunContext.from_args(ns.run_id, ns.repo_root, fmt, ns.verbose, ns.quiet, ns.log_json)
        log_event(ctx, "debug", "cli", "start", cmd=ns.cmd, repo_root=ctx.repo_root)
        runner = RUNNERS.get(ns.cmd)
        if runner is None:
            return ERR_USAGE
        return runner(ctx, ns)
    except ScriptError as exc:
        print(render_error(as_json=as_json, message=str(exc), code=exc.code, kind=exc.kind), file=sys.stderr)
        return exc.code
    except Exception as exc:  # pragma: no cover
        print(render_error(as_json=as_json, message=f"internal error: {exc}", code=ERR_INTERNAL), file=sys.stderr)
        return ERR_INTERNAL


if __name__ == "__main__":
    raise SystemExit(main())
