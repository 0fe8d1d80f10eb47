"""Per-application promotion graph."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from .topology import DEFAULT_TOPOLOGY, PromotionTopology


@dataclass(frozen=True)
class Stage:
    name: str
    upstream: str = ""

    @property
    def is_direct(self) -> bool:
        """True when the stage pulls straight from the warehouse instead of another stage."""
        return not self.upstream

    def as_dict(self) -> dict[str, str]:
        return {"name": self.name, "upstream": self.upstream}


def build_stage_graph(targets: Iterable[str], topology: PromotionTopology = DEFAULT_TOPOLOGY) -> list[Stage]:
    selected = set(targets)
    stages: list[Stage] = []
    upstream = ""
    for env in topology.chain:
        if env not in selected:
            continue
        stages.append(Stage(name=env, upstream=upstream))
        upstream = env
    last_chain = upstream
    for env in sorted(selected & topology.fan_out):
        stages.append(Stage(name=env, upstream=last_chain))
    return stages


def auto_promoted(stages: Iterable[Stage], topology: PromotionTopology = DEFAULT_TOPOLOGY) -> list[Stage]:
    """Stages that advance on their own; the first chain stage is always promoted by hand."""
    return [stage for stage in stages if stage.name != topology.first_stage]
