"""Flatten a structured ACP prompt into kiro-cli's single text argument."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any


def _field(obj: Any, name: str) -> Any:
    if isinstance(obj, dict):
        return obj.get(name)
    return getattr(obj, name, None)


def prompt_to_text(blocks: Iterable[Any]) -> str:
    """Concatenate prompt content blocks into plain text.

    - text: the text itself
    - resource_link: the URI
    - resource: embedded text wrapped in a ``<context ref="...">`` element
      (binary resources are skipped)
    - image: the URI when one is given

    Blocks are joined without separators, so ``"a"``, a link to
    ``file:///x`` and ``"b"`` give ``"afile:///xb"``.
    """
    parts: list[str] = []

    for block in blocks:
        match _field(block, "type"):
            case "text":
                parts.append(_field(block, "text") or "")
            case "resource_link":
                parts.append(_field(block, "uri") or "")
            case "resource":
                resource = _field(block, "resource")
                text = _field(resource, "text")
                if text is not None:
                    uri = _field(resource, "uri") or ""
                    parts.append(f'\n<context ref="{uri}">\n{text}\n</context>\n')
            case "image":
                uri = _field(block, "uri")
                if uri:
                    parts.append(uri)

    return "".join(parts)
