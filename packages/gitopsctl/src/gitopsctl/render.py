from __future__ import annotations

from typing import Any, Sequence

from .core.serialize import dumps_yaml, dumps_yaml_documents

GENERATED_MARKER = "# GENERATED - DO NOT EDIT"


def provenance_header(declaration_path: str, regenerate: str, notes: Sequence[str] = ()) -> str:
    lines = [
        GENERATED_MARKER,
        f"# Source: {declaration_path}",
        f"# Run '{regenerate}' to regenerate",
    ]
    if notes:
        lines.append("#")
        lines.extend(f"# {note}" if note else "#" for note in notes)
    return "\n".join(lines) + "\n"


def render_document(header: str, document: dict[str, Any]) -> str:
    return header + dumps_yaml(document)


def render_documents(header: str, documents: Sequence[dict[str, Any]]) -> str:
    if not documents:
        return header
    return header + dumps_yaml_documents(documents)
