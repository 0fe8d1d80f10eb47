"""Per-cluster placement records consumed by the ApplicationSet git directory generator."""

from .reconcile import PlacementKey, PlacementPlan, apply_placements, plan_placements

__all__ = ["PlacementKey", "PlacementPlan", "apply_placements", "plan_placements"]
