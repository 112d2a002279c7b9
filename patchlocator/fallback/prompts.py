from __future__ import annotations

import json
import re
from typing import Any, Sequence

from patchlocator.config.schema import AttributeChange, ElementDescriptor, StyleChange, TextChange

SYSTEM_PROMPT = """You are a React/TypeScript code modifier. Given a code snippet and a requested change, output ONLY the modified snippet.
Rules:
1. Modify the existing element in place. Do not duplicate or remove elements.
2. For style changes, add or merge a style prop on the element's opening tag.
3. For text changes, update only the element's text content.
4. Preserve exact indentation and formatting of every untouched line.
5. Output the full snippet with no explanation, no prose, and no markdown."""

_CAMEL_PATTERN = re.compile(r"([A-Z])")


def snippet_window(line_count: int, target_line: int, context_lines: int) -> tuple[int, int]:
    """Returns the 0-based ``[start, end)`` line range sent to the fallback."""

    start = max(0, target_line - context_lines)
    end = min(line_count, target_line + context_lines)
    return start, end


def describe_change(change: TextChange | StyleChange | AttributeChange) -> str:
    if isinstance(change, StyleChange):
        css = "; ".join(f"{_kebab_case(prop)}: {value}" for prop, value in change.css_changes.items())
        return f"CSS changes to apply: {css}"
    if isinstance(change, AttributeChange):
        return f"Set the {change.name} attribute to {change.new_value!r}"
    return f"Change the text {change.old_text!r} to {change.new_text!r}"


def build_fallback_payload(
    *,
    lines: Sequence[str],
    start: int,
    end: int,
    target_line: int,
    line_reliable: bool,
    element: ElementDescriptor,
    change: TextChange | StyleChange | AttributeChange,
    file_path: str = "",
) -> dict[str, Any]:
    return {
        "source_file": file_path,
        "snippet": "\n".join(lines[start:end]),
        "snippet_lines": [start + 1, end],
        "target_line": target_line if line_reliable else None,
        "element": {
            "tag": element.tag_name,
            "classes": element.class_name or None,
            "id": element.id or None,
            "text": element.text[:100] or None,
            "attributes": element.attributes,
        },
        "change_kind": change.kind,
        "change": describe_change(change),
    }


def _kebab_case(prop: str) -> str:
    return _CAMEL_PATTERN.sub(r"-\1", prop).lower()


def build_user_prompt(payload: dict[str, Any]) -> str:
    """Formats the request as sorted JSON followed by the snippet in a fence.

    The snippet stays out of the JSON so the model sees its real line breaks.
    """

    request = {key: value for key, value in payload.items() if key != "snippet"}
    return (
        f"Request:\n{json.dumps(request, indent=2, sort_keys=True)}\n\n"
        f"Code snippet:\n```tsx\n{payload['snippet']}\n```"
    )
