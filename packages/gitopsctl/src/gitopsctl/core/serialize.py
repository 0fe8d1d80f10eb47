"""Canonical JSON and YAML serialization helpers."""

from __future__ import annotations

import json
from typing import Any, Sequence

import yaml


def dumps_json(payload: Any, pretty: bool = False) -> str:
    if pretty:
        return json.dumps(payload, indent=2, sort_keys=True)
    return json.dumps(payload, sort_keys=True)


class _BlockDumper(yaml.SafeDumper):
    """Indents sequences under their parent key, the way kubectl renders manifests."""

    def increase_indent(self, flow: bool = False, indentless: bool = False) -> None:
        return super().increase_indent(flow, False)


def dumps_yaml(document: Any) -> str:
    return yaml.dump(
        document,
        Dumper=_BlockDumper,
        sort_keys=False,
        default_flow_style=False,
        allow_unicode=True,
    )


def dumps_yaml_documents(documents: Sequence[Any]) -> str:
    return yaml.dump_all(
        documents,
        Dumper=_BlockDumper,
        sort_keys=False,
        default_flow_style=False,
        allow_unicode=True,
    )
