from __future__ import annotations

import re
from typing import Sequence

from patchlocator.config.schema import DEFAULT_CONFIG, LocatorConfig
from patchlocator.core.metadata import TagBlock

TAG_CLOSE_PATTERN = re.compile(r"/?>")
_WHITESPACE_PATTERN = re.compile(r"\s+")


def read_tag_block(lines: Sequence[str], start: int, config: LocatorConfig | None = None) -> TagBlock:
    """Reads an opening tag that may wrap across several lines.

    The block grows one line at a time until it contains ``>`` or ``/>``.
    It never spans more than ``tag_block_max_lines`` lines, so malformed
    markup cannot make the scan run away.
    """

    settings = config or DEFAULT_CONFIG
    end = start
    tag_text = lines[start] or ""
    while (
        not TAG_CLOSE_PATTERN.search(tag_text)
        and end - start + 1 < settings.tag_block_max_lines
        and end + 1 < len(lines)
    ):
        end += 1
        tag_text += "\n" + (lines[end] or "")
    return TagBlock(start=start, end=end, text=tag_text)


def matches_attribute(tag_text: str, name: str, value: str) -> bool:
    """Checks for an attribute value in raw tag text, tolerating reformatting.

    Long values (SVG path data, data URIs) rarely survive byte-identical in
    formatted source, so a unique prefix, and then a whitespace-normalized
    prefix, is accepted as well.
    """

    if not tag_text or not name or not value:
        return False
    if f"{name}=" not in tag_text:
        return False
    if value in tag_text:
        return True
    prefix_len = min(64, max(12, len(value) // 3))
    prefix = value[:prefix_len]
    if prefix and prefix in tag_text:
        return True
    normalized_prefix = _collapse_whitespace(value).strip()[:prefix_len]
    return bool(normalized_prefix) and normalized_prefix in _collapse_whitespace(tag_text)


def _collapse_whitespace(text: str) -> str:
    return _WHITESPACE_PATTERN.sub(" ", text)
