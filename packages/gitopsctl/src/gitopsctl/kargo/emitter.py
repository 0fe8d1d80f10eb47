from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable

from ..catalog.models import Application
from ..core.context import RunContext
from ..core.errors import ScriptError
from ..core.exit_codes import ERR_CONFIG
from ..core.fs import remove_tree, snapshot_tree, write_text
from ..core.logging import log_event
from ..render import provenance_header, render_document, render_documents
from ..stages import build_stage_graph
from ..topology import DEFAULT_TOPOLOGY, PromotionTopology
from . import resources
from .origin import Origin

PIPELINE_ROOT = Path("apps") / "kargo-configs"
REGENERATE = "gitopsctl gen pipelines"

NAMESPACE_NOTES = (
    "This namespace resource labels the namespace for Kargo project adoption.",
    "If the namespace already exists (e.g., created by the app deployment),",
    "this will add the required label so Kargo can manage it as a Project.",
)


def _project_config_notes(topology: PromotionTopology) -> tuple[str, ...]:
    first = topology.first_stage
    return (
        f"ProjectConfig enables auto-promotion for all stages except {first}.",
        f"{first} stage requires manual promotion to initiate the pipeline.",
    )


def render_pipeline(
    app: Application,
    origin: Origin,
    topology: PromotionTopology = DEFAULT_TOPOLOGY,
) -> dict[str, str]:
    """Render every resource file for one application, in emission order."""
    stages = build_stage_graph(app.targets, topology)
    source = app.declaration_path

    def header(*notes: str) -> str:
        return provenance_header(source, REGENERATE, notes)

    return {
        "namespace.yaml": render_document(header(*NAMESPACE_NOTES), resources.namespace(app)),
        "project.yaml": render_document(header(), resources.project(app)),
        "project-config.yaml": render_document(
            header(*_project_config_notes(topology)),
            resources.project_config(app, stages, topology),
        ),
        "warehouse.yaml": render_document(header(), resources.warehouse(app, origin)),
        "stages.yaml": render_documents(
            header(f"Promotion flow: {topology.describe_flow()}"),
            [resources.stage_definition(app, stage, topology) for stage in stages],
        ),
    }


@dataclass
class PipelinePlan:
    root: Path
    files: dict[str, dict[str, str]] = field(default_factory=dict)
    skipped: list[str] = field(default_factory=list)

    def expected_tree(self) -> dict[str, str]:
        return {
            f"{app}/{name}": content
            for app, rendered in sorted(self.files.items())
            for name, content in rendered.items()
        }

    def drift(self) -> dict[str, list[str]]:
        expected = self.expected_tree()
        actual = snapshot_tree(self.root)
        return {
            "missing": sorted(expected.keys() - actual.keys()),
            "changed": sorted(p for p in expected.keys() & actual.keys() if expected[p] != actual[p]),
            "stale": sorted(actual.keys() - expected.keys()),
        }

    @property
    def in_sync(self) -> bool:
        return not any(self.drift().values())


def _check_unique_names(apps: list[Application]) -> None:
    seen: dict[str, Application] = {}
    for app in apps:
        other = seen.get(app.name)
        if other is not None:
            raise ScriptError(
                f"pipeline name clash: {other.key} and {app.key} both map to {PIPELINE_ROOT / app.name}",
                ERR_CONFIG,
                kind="duplicate_app_name",
            )
        seen[app.name] = app


def plan_pipelines(
    repo_root: Path,
    apps: Iterable[Application],
    origin: Origin,
    topology: PromotionTopology = DEFAULT_TOPOLOGY,
) -> PipelinePlan:
    plan = PipelinePlan(root=repo_root / PIPELINE_ROOT)
    eligible: list[Application] = []
    for app in apps:
        if app.targets:
            eligible.append(app)
        else:
            plan.skipped.append(app.key)
    _check_unique_names(eligible)
    for app in eligible:
        plan.files[app.name] = render_pipeline(app, origin, topology)
    return plan


def apply_pipelines(ctx: RunContext, plan: PipelinePlan) -> dict[str, list[str]]:
    if remove_tree(plan.root):
        log_event(ctx, "info", "pipelines", "reset", root=plan.root.relative_to(ctx.repo_root).as_posix())
    for key in plan.skipped:
        log_event(ctx, "info", "pipelines", "skip", app=key, reason="no target environments")
    written: list[str] = []
    for app_name, rendered in sorted(plan.files.items()):
        app_dir = plan.root / app_name
        remove_tree(app_dir)
        for name, content in rendered.items():
            write_text(app_dir / name, content)
            written.append(f"{app_name}/{name}")
            log_event(ctx, "debug", "pipelines", "write", path=f"{app_name}/{name}")
        log_event(ctx, "info", "pipelines", "generated", app=app_name, files=len(rendered))
    return {"written": written, "skipped": list(plan.skipped)}
