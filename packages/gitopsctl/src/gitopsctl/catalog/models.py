from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

Category = Literal["workloads", "infra"]

CATEGORIES: tuple[Category, ...] = ("workloads", "infra")
DECLARATION_FILE = "app-config.yaml"
TARGETS_FIELD = "targetClusters"
# apps/infra/argocd is the GitOps controller managing itself, not a deployable app
SELF_MANAGED: dict[str, frozenset[str]] = {"infra": frozenset({"argocd"})}


@dataclass(frozen=True)
class Application:
    name: str
    category: Category
    source_path: str
    targets: frozenset[str]

    @property
    def declaration_path(self) -> str:
        return f"{self.source_path}/{DECLARATION_FILE}"

    @property
    def key(self) -> str:
        return f"{self.category}/{self.name}"

    def sorted_targets(self) -> list[str]:
        return sorted(self.targets)

    def as_dict(self) -> dict[str, object]:
        return {
            "name": self.name,
            "category": self.category,
            "source_path": self.source_path,
            "targets": self.sorted_targets(),
        }
