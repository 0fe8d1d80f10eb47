"""Application catalog: discovery of declared apps under apps/workloads and apps/infra."""

from .discovery import discover_apps
from .models import Application, Category

__all__ = ["Application", "Category", "discover_apps"]
