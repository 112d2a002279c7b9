from __future__ import annotations

import logging
import math
import re
from typing import Sequence

from patchlocator.config.schema import DEFAULT_CONFIG, ElementDescriptor, LocatorConfig
from patchlocator.utils.scoring import pick_stable_attributes
from patchlocator.utils.tag_block import matches_attribute, read_tag_block

log = logging.getLogger(__name__)

_MARKUP_CONTEXT_PATTERN = re.compile(r"<\w|</|>")


def is_reliable_line(source_line, config: LocatorConfig | None = None) -> bool:
    """Inspector line numbers below the floor (commonly 0) are not trusted."""

    settings = config or DEFAULT_CONFIG
    if source_line is None or isinstance(source_line, bool):
        return False
    try:
        value = float(source_line)
    except (TypeError, ValueError):
        return False
    return math.isfinite(value) and value >= settings.reliable_line_floor


def clamp_line(source_line, line_count: int) -> int:
    """Clamps a 1-based line into ``[1, line_count]``; garbage becomes line 1."""

    upper = max(1, line_count)
    try:
        value = float(source_line)
    except (TypeError, ValueError):
        return 1
    if not math.isfinite(value) or value < 1:
        return 1
    return min(int(value), upper)


def derive_effective_line(
    lines: Sequence[str],
    source_line,
    element: ElementDescriptor,
    config: LocatorConfig | None = None,
) -> int:
    """Recovers a usable 1-based target line for an element.

    A reliable reported line is kept. Otherwise the first opening tag of the
    element's type whose block contains every stable attribute wins. One
    matching attribute is not enough evidence, so anything short of a full
    match falls back to line 1.
    """

    settings = config or DEFAULT_CONFIG
    if is_reliable_line(source_line, settings):
        return clamp_line(source_line, len(lines))

    tag_lower = element.tag_name.lower()
    stable_attributes = pick_stable_attributes(element.attributes, settings)
    if tag_lower and stable_attributes:
        needle = f"<{tag_lower}"
        for index, line in enumerate(lines):
            if needle not in (line or "").lower():
                continue
            block = read_tag_block(lines, index, settings)
            if all(matches_attribute(block.text, item.name, item.value) for item in stable_attributes):
                log.debug("Derived line %s for <%s> from attributes", index + 1, tag_lower)
                return index + 1
    log.debug("No attribute-complete <%s> found; falling back to line 1", tag_lower or "?")
    return 1


def derive_text_target_line(lines: Sequence[str], old_text: str) -> int | None:
    """Finds the first occurrence of ``old_text`` that sits in markup context.

    Returns ``None`` rather than a default line: retrying a text change around
    an arbitrary line could pick the wrong one of several occurrences.
    """

    if not old_text:
        return None
    for index, line in enumerate(lines):
        if old_text not in (line or ""):
            continue
        previous_line = lines[index - 1] if index > 0 else ""
        next_line = lines[index + 1] if index + 1 < len(lines) else ""
        nearby = f"{previous_line}\n{line}\n{next_line}"
        if _MARKUP_CONTEXT_PATTERN.search(nearby):
            return index + 1
    return None
