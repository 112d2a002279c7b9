from __future__ import annotations

from typing import Iterable, Mapping

from patchlocator.config.schema import DEFAULT_CONFIG, LocatorConfig
from patchlocator.core.metadata import StableAttribute
from patchlocator.utils.tag_block import matches_attribute

VOLATILE_ATTRIBUTES = frozenset({"class", "className", "id", "style"})

_FIXED_WEIGHTS = {
    "d": 100,
    "href": 80,
    "xlink:href": 80,
    "src": 80,
    "aria-label": 70,
    "viewBox": 60,
}


def pick_stable_attributes(
    attributes: Mapping[str, str] | None,
    config: LocatorConfig | None = None,
) -> list[StableAttribute]:
    """Ranks the attributes most likely to identify an element in raw markup."""

    settings = config or DEFAULT_CONFIG
    if not attributes:
        return []
    banned = VOLATILE_ATTRIBUTES | set(settings.instrumentation_attributes)
    stable: list[StableAttribute] = []
    for raw_name, raw_value in attributes.items():
        name = str(raw_name or "").strip()
        value = str(raw_value or "").strip()
        if not name or not value or name in banned:
            continue
        stable.append(StableAttribute(name=name, value=value, weight=attribute_weight(name, value)))
    # sort() is stable, so equal weights keep their attribute order.
    stable.sort(key=lambda item: item.weight, reverse=True)
    return stable[: settings.max_stable_attributes]


def attribute_weight(name: str, value: str) -> int:
    fixed = _FIXED_WEIGHTS.get(name)
    if fixed is not None:
        return fixed
    return min(40, max(10, len(value)))


def score_tag_block(tag_text: str, stable_attributes: Iterable[StableAttribute]) -> tuple[int, list[str]]:
    score = 0
    matched: list[str] = []
    for attribute in stable_attributes:
        if matches_attribute(tag_text, attribute.name, attribute.value):
            score += attribute.weight
            matched.append(attribute.name)
    return score, matched
