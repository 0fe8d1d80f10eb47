from __future__ import annotations

import json
from functools import lru_cache
from importlib import resources
from typing import Any

import jsonschema

from .errors import ScriptError
from .exit_codes import ERR_CONFIG


@lru_cache(maxsize=None)
def load_schema(name: str) -> dict[str, Any]:
    text = resources.files("gitopsctl.schemas").joinpath(name).read_text(encoding="utf-8")
    return json.loads(text)


def schema_errors(payload: Any, name: str) -> list[jsonschema.ValidationError]:
    validator = jsonschema.Draft202012Validator(load_schema(name))
    return sorted(validator.iter_errors(payload), key=lambda e: list(e.absolute_path))


def validate_payload(payload: Any, name: str, source: str) -> None:
    errors = schema_errors(payload, name)
    if not errors:
        return
    exc = errors[0]
    pointer = "/".join(str(p) for p in exc.absolute_path)
    loc = pointer or "<root>"
    raise ScriptError(f"{source}: schema validation failed at {loc}: {exc.message}", ERR_CONFIG, kind="schema_violation")
