__version__ = "0.1.0"

__all__ = [
    "__version__",
    "catalog",
    "cli",
    "core",
    "gen",
    "kargo",
    "placements",
    "plan",
    "stages",
    "topology",
]
