from __future__ import annotations

import re

from patchlocator.core.exceptions import FallbackResponseError

_CODE_FENCE_PATTERN = re.compile(r"```(?:tsx?|jsx?|typescript|javascript)?\s*([\s\S]*?)```")

PROSE_INDICATORS = (
    re.compile(r"^The provided", re.IGNORECASE),
    re.compile(r"^I cannot", re.IGNORECASE),
    re.compile(r"^I apologize", re.IGNORECASE),
    re.compile(r"^Unfortunately", re.IGNORECASE),
    re.compile(r"^This (code|update|change)", re.IGNORECASE),
    re.compile(r"^Here'?s (how|an example)", re.IGNORECASE),
    re.compile(r"does not make sense", re.IGNORECASE),
    re.compile(r"is not (a )?valid", re.IGNORECASE),
    re.compile(r"you (should|can|need to)", re.IGNORECASE),
)


def looks_like_prose(text: str) -> bool:
    first_line = text.strip().split("\n")[0]
    return any(pattern.search(first_line) for pattern in PROSE_INDICATORS)


def parse_patch_response(response: str) -> str:
    snippet = (response or "").strip()
    fenced = _CODE_FENCE_PATTERN.search(snippet)
    if fenced:
        snippet = fenced.group(1).strip()
    if not snippet:
        raise FallbackResponseError("Fallback returned an empty snippet")
    if looks_like_prose(snippet):
        raise FallbackResponseError("Fallback returned prose instead of code")
    return snippet
