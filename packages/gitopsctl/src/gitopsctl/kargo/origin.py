from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from ..core.context import RunContext
from ..core.env import getenv
from ..core.errors import ScriptError
from ..core.exit_codes import ERR_CONFIG
from ..core.logging import log_event
from ..core.schema import schema_errors

CREDENTIALS_FILE = "values-credentials.yaml"
DEFAULT_BRANCH = "main"


@dataclass(frozen=True)
class Origin:
    url: str
    subscription_url: str
    branch: str = DEFAULT_BRANCH

    def as_dict(self) -> dict[str, str]:
        return {"url": self.url, "subscription_url": self.subscription_url, "branch": self.branch}


def _lookup(data: dict[str, Any], *keys: str) -> str:
    node: Any = data
    for key in keys:
        if not isinstance(node, dict):
            return ""
        node = node.get(key)
    return node.strip() if isinstance(node, str) else ""


def load_credentials(ctx: RunContext, path: Path) -> dict[str, Any]:
    if not path.is_file():
        return {}
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        log_event(ctx, "warn", "origin", "ignore-credentials", file=path.name, reason=f"unreadable: {exc}")
        return {}
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        log_event(ctx, "warn", "origin", "ignore-credentials", file=path.name, reason=str(exc).splitlines()[0])
        return {}
    if schema_errors(data, "credentials.schema.json"):
        log_event(ctx, "warn", "origin", "ignore-credentials", file=path.name, reason="unexpected structure")
        return {}
    return data or {}


def repo_name(url: str) -> str:
    """Last path segment of a git URL, e.g. `repo.git` for https://github.com/user/repo.git."""
    parts = url.rstrip("/").split("/")
    return parts[-1] if len(parts) >= 2 else ""


def resolve_origin(ctx: RunContext, branch: str = DEFAULT_BRANCH) -> Origin:
    creds = load_credentials(ctx, ctx.repo_root / CREDENTIALS_FILE)
    url = getenv("GIT_REPO_URL") or _lookup(creds, "gitRepo", "url")
    if not url:
        raise ScriptError(
            f"GIT_REPO_URL not set and {CREDENTIALS_FILE} not found or missing `gitRepo.url`",
            ERR_CONFIG,
            kind="missing_origin",
        )
    subscription = getenv("KARGO_GIT_REPO_URL") or ""
    if not subscription:
        ssh_base = _lookup(creds, "kargo", "git", "repoURL")
        if ssh_base:
            name = repo_name(url)
            subscription = f"{ssh_base.rstrip('/')}/{name}" if name else ssh_base
    origin = Origin(url=url, subscription_url=subscription or url, branch=branch)
    log_event(ctx, "debug", "origin", "resolved", url=origin.url, subscription=origin.subscription_url, branch=branch)
    return origin
