"""Kargo and Kubernetes documents for one application.

Field names follow the kargo.akuity.io/v1alpha1 API exactly; the controller
rejects unknown fields, so these builders are the wire contract.
"""

from __future__ import annotations

from typing import Any

from ..catalog.models import Application
from ..stages import Stage, auto_promoted
from ..topology import DEFAULT_TOPOLOGY, PromotionTopology
from .origin import Origin

KARGO_API = "kargo.akuity.io/v1alpha1"
PROJECT_LABEL = "kargo.akuity.io/project"


def _metadata(app: Application, name: str | None = None) -> dict[str, Any]:
    return {"name": name or app.name, "namespace": app.name}


def namespace(app: Application) -> dict[str, Any]:
    return {
        "apiVersion": "v1",
        "kind": "Namespace",
        "metadata": {"name": app.name, "labels": {PROJECT_LABEL: "true"}},
    }


def project(app: Application) -> dict[str, Any]:
    return {"apiVersion": KARGO_API, "kind": "Project", "metadata": {"name": app.name}}


def project_config(app: Application, stages: list[Stage], topology: PromotionTopology = DEFAULT_TOPOLOGY) -> dict[str, Any]:
    policies = [
        {"stageSelector": {"name": stage.name}, "autoPromotionEnabled": True}
        for stage in auto_promoted(stages, topology)
    ]
    return {
        "apiVersion": KARGO_API,
        "kind": "ProjectConfig",
        "metadata": _metadata(app),
        "spec": {"promotionPolicies": policies},
    }


def warehouse(app: Application, origin: Origin) -> dict[str, Any]:
    return {
        "apiVersion": KARGO_API,
        "kind": "Warehouse",
        "metadata": _metadata(app),
        "spec": {
            "subscriptions": [
                {
                    "git": {
                        "repoURL": origin.subscription_url,
                        "branch": origin.branch,
                        "includePaths": [app.source_path],
                    }
                }
            ]
        },
    }


def _requested_freight(app: Application, stage: Stage) -> list[dict[str, Any]]:
    sources: dict[str, Any]
    if stage.is_direct:
        sources = {"direct": True}
    else:
        sources = {
            "stages": [stage.upstream],
            "autoPromotionOptions": {"selectionPolicy": "MatchUpstream"},
        }
    return [{"origin": {"kind": "Warehouse", "name": app.name}, "sources": sources}]


def stage_definition(app: Application, stage: Stage, topology: PromotionTopology = DEFAULT_TOPOLOGY) -> dict[str, Any]:
    spec: dict[str, Any] = {}
    if stage.name != topology.control_plane:
        spec["shard"] = stage.name
    spec["requestedFreight"] = _requested_freight(app, stage)
    spec["promotionTemplate"] = {
        "spec": {
            "steps": [
                {"uses": "argocd-update", "config": {"apps": [{"name": app.name}]}},
            ]
        }
    }
    return {
        "apiVersion": KARGO_API,
        "kind": "Stage",
        "metadata": _metadata(app, stage.name),
        "spec": spec,
    }
