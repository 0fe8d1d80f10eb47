"""Kargo progressive-delivery resources: one Project, Warehouse and Stage set per application."""

from .emitter import PipelinePlan, apply_pipelines, plan_pipelines
from .origin import Origin, resolve_origin

__all__ = ["Origin", "PipelinePlan", "apply_pipelines", "plan_pipelines", "resolve_origin"]
