"""Environment topology: which clusters exist and how promotions flow between them."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class PromotionTopology:
    """Fixed promotion layout.

    `chain` is walked strictly in order; every environment in `fan_out` is
    promoted in parallel once the chain completes. `control_plane` names the
    environment whose stages run on the default controller instead of a shard.
    `flow_order` only affects how the fan-out group is written in headers.
    """

    chain: tuple[str, ...]
    fan_out: frozenset[str]
    control_plane: str = "infra"
    flow_order: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        overlap = set(self.chain) & self.fan_out
        if overlap:
            raise ValueError(f"environments cannot be both chained and fanned out: {sorted(overlap)}")
        if len(set(self.chain)) != len(self.chain):
            raise ValueError(f"duplicate chain environments: {list(self.chain)}")
        if self.flow_order and (set(self.flow_order) != self.fan_out or len(self.flow_order) != len(self.fan_out)):
            raise ValueError(f"flow order must list each fan-out environment once: {list(self.flow_order)}")

    @property
    def environments(self) -> frozenset[str]:
        return frozenset(self.chain) | self.fan_out

    @property
    def first_stage(self) -> str:
        return self.chain[0] if self.chain else ""

    def describe_flow(self) -> str:
        return " → ".join([*self.chain, f"({', '.join(self._fan_out_display())})"])

    def _fan_out_display(self) -> list[str]:
        if self.flow_order:
            return list(self.flow_order)
        # control plane listed last
        return sorted(self.fan_out, key=lambda env: (env == self.control_plane, env))


DEFAULT_TOPOLOGY = PromotionTopology(
    chain=("test", "dev", "staging"),
    fan_out=frozenset({"prod-us", "prod-eu", "prod-au", "infra"}),
    flow_order=("prod-us", "prod-eu", "prod-au", "infra"),
)
