from __future__ import annotations

import logging
import math
import re
from typing import Mapping, Sequence

from patchlocator.config.schema import DEFAULT_CONFIG, ElementDescriptor, LocatorConfig
from patchlocator.core.exceptions import DescriptorValidationError
from patchlocator.core.line_deriver import clamp_line
from patchlocator.core.metadata import MatchCandidate
from patchlocator.utils.scoring import pick_stable_attributes, score_tag_block
from patchlocator.utils.tag_block import matches_attribute, read_tag_block

log = logging.getLogger(__name__)

_KEBAB_PATTERN = re.compile(r"-([a-z])")
_STYLE_ATTRIBUTE_PATTERN = re.compile(r"(?<![\w:-])style\s*=")
_STYLE_OBJECT_PATTERN = re.compile(r"style\s*=\s*\{\{(?P<body>[^{}]*)\}\}")
_STYLE_STRING_PATTERN = re.compile(r"style\s*=\s*(?P<quote>[\"'])(?P<body>.*?)(?P=quote)", re.DOTALL)
_STYLE_ENTRY_PATTERN = re.compile(
    r"\s*(?P<key>[A-Za-z_$][\w$]*|'[^']*'|\"[^\"]*\")\s*:\s*"
    r"(?P<value>'(?:\\.|[^'\\])*'|\"(?:\\.|[^\"\\])*\"|[^,'\"]+?)\s*(?:,|$)",
    re.DOTALL,
)


def try_text_change(
    content: str,
    old_text: str,
    new_text: str,
    source_line=None,
    config: LocatorConfig | None = None,
) -> str | None:
    """Replaces a rendered text node or string literal in the source.

    With a usable ``source_line`` the search is confined to a window around
    it. Without one, the whole document is only touched when ``old_text``
    occurs exactly once; anything ambiguous declines with ``None``.
    """

    settings = config or DEFAULT_CONFIG
    if not old_text or old_text == new_text:
        return None
    patterns = _text_patterns(old_text)

    if _has_line(source_line):
        lines = content.split("\n")
        target = clamp_line(source_line, len(lines))
        start = max(0, target - settings.text_scope_radius - 1)
        end = min(len(lines), target + settings.text_scope_radius)
        scope = "\n".join(lines[start:end])
        patched_scope = _replace_in_scope(scope, patterns, new_text)
        if patched_scope is not None:
            log.debug("Text replaced within lines %s-%s", start + 1, end)
            return "\n".join(lines[:start] + patched_scope.split("\n") + lines[end:])

    occurrences = content.count(old_text)
    if occurrences == 1:
        patched = _replace_in_scope(content, patterns, new_text)
        if patched is not None:
            log.debug("Text replaced at its single occurrence")
            return patched
    else:
        log.debug("Declining text change: %s unscoped occurrences of %r", occurrences, old_text[:50])
    return None


def locate_unique_candidate(
    lines: Sequence[str],
    target_line,
    element: ElementDescriptor,
    config: LocatorConfig | None = None,
) -> MatchCandidate | None:
    """Finds the single opening tag near ``target_line`` that carries the element's attributes."""

    settings = config or DEFAULT_CONFIG
    tag_name = element.tag_name.lower()
    if not tag_name:
        raise DescriptorValidationError("Element descriptor has no tag name")

    stable_attributes = pick_stable_attributes(element.attributes, settings)
    if not stable_attributes:
        log.debug("Declining: <%s> has no stable attributes to anchor on", tag_name)
        return None

    target = clamp_line(target_line, len(lines))
    start = max(0, target - settings.style_scan_radius - 1)
    end = min(len(lines), target + settings.style_scan_radius)
    # A bare "<img" at the end of a line starts a wrapped tag.
    tag_start = re.compile(rf"<{re.escape(tag_name)}(?:\s|>|/|$)", re.IGNORECASE)

    candidates: list[MatchCandidate] = []
    for index in range(start, end):
        line = lines[index] or ""
        if "<" not in line or not tag_start.search(line):
            continue
        block = read_tag_block(lines, index, settings)
        score, matched = score_tag_block(block.text, stable_attributes)
        if not matched:
            continue
        candidates.append(
            MatchCandidate(start=block.start, end=block.end, tag_text=block.text, score=score, matched=matched)
        )

    strong = [candidate for candidate in candidates if candidate.score >= settings.min_score]
    if len(strong) != 1:
        log.debug(
            "Declining: %s candidate(s) for <%s> reached score %s",
            len(strong),
            tag_name,
            settings.min_score,
        )
        return None
    return strong[0]


def try_style_change(
    content: str,
    target_line,
    element: ElementDescriptor,
    css_changes: Mapping[str, str],
    config: LocatorConfig | None = None,
) -> str | None:
    """Writes inline style properties into the element's opening tag.

    Only the opening tag of the matched element is edited; children sharing
    its lines are left alone. A ``style`` prop that is not a flat object
    literal or a plain string declines instead of gaining a second ``style``.
    """

    if not css_changes:
        return None
    lines = content.split("\n")
    candidate = locate_unique_candidate(lines, target_line, element, config)
    if candidate is None:
        return None
    opening = _opening_tag_span(candidate, element, config)
    if opening is None:
        log.debug("Declining: matched attributes are not on one <%s> opening tag", element.tag_name)
        return None

    tag_start, name_end, tag_end = opening
    tag_text = candidate.tag_text
    head = tag_text[tag_start:tag_end]
    new_entries = {_style_key(prop): _quote_style_value(value) for prop, value in css_changes.items()}
    style_attribute = _STYLE_ATTRIBUTE_PATTERN.search(head)

    if style_attribute is None:
        name_length = name_end - tag_start
        next_head = head[:name_length] + f" style={_format_style_object(new_entries)}" + head[name_length:]
    else:
        object_match = _STYLE_OBJECT_PATTERN.match(head, style_attribute.start())
        string_match = _STYLE_STRING_PATTERN.match(head, style_attribute.start())
        if object_match:
            existing = _parse_style_object(object_match.group("body"))
            if existing is None:
                log.debug("Declining: existing style object is not a flat literal")
                return None
            merged = {**existing, **new_entries}
            if merged == existing:
                return content
            next_head = _splice(head, object_match.span(), f"style={_format_style_object(merged)}")
        elif string_match:
            merged = {**_parse_style_string(string_match.group("body")), **new_entries}
            next_head = _splice(head, string_match.span(), f"style={_format_style_object(merged)}")
        else:
            log.debug("Declining: style prop of <%s> is an expression", element.tag_name)
            return None

    next_tag_text = tag_text[:tag_start] + next_head + tag_text[tag_end:]
    lines[candidate.start : candidate.end + 1] = next_tag_text.split("\n")
    log.debug("Style written into lines %s-%s", candidate.start + 1, candidate.end + 1)
    return "\n".join(lines)


def try_attribute_change(
    content: str,
    target_line,
    element: ElementDescriptor,
    name: str,
    new_value: str,
    config: LocatorConfig | None = None,
) -> str | None:
    """Replaces one attribute value (usually ``src``) in the element's opening tag."""

    lines = content.split("\n")
    candidate = locate_unique_candidate(lines, target_line, element, config)
    if candidate is None:
        return None
    opening = _opening_tag_span(candidate, element, config)
    if opening is None:
        return None

    tag_start, _, tag_end = opening
    tag_text = candidate.tag_text
    head = tag_text[tag_start:tag_end]
    attribute = re.escape(name)
    quoted = re.search(
        rf"(?<![\w:-]){attribute}\s*=\s*(?P<quote>['\"])(?P<value>(?:(?!(?P=quote)).)*)(?P=quote)",
        head,
    )
    expression = re.search(rf"(?<![\w:-]){attribute}\s*=\s*\{{(?P<value>[^}}]*)\}}", head)
    matches = [match for match in (quoted, expression) if match]
    if not matches:
        log.debug("Declining: %s is not written in the matched <%s> tag", name, element.tag_name)
        return None
    match = min(matches, key=lambda item: item.start())

    quote = match.group("quote") if match is quoted else '"'
    if quote in new_value:
        quote = "'" if quote == '"' else '"'
        if quote in new_value:
            log.debug("Declining: new %s value contains both quote characters", name)
            return None

    if match is quoted and match.group("value") == new_value:
        return content
    next_head = _splice(head, match.span(), f"{name}={quote}{new_value}{quote}")
    next_tag_text = tag_text[:tag_start] + next_head + tag_text[tag_end:]
    lines[candidate.start : candidate.end + 1] = next_tag_text.split("\n")
    return "\n".join(lines)


def _format_style_object(entries: Mapping[str, str]) -> str:
    """Renders already keyed and quoted entries as a JSX ``{{ ... }}`` object."""

    body = ", ".join(f"{key}: {value}" for key, value in entries.items())
    return f"{{{{ {body} }}}}"


def _opening_tag_span(
    candidate: MatchCandidate,
    element: ElementDescriptor,
    config: LocatorConfig | None,
) -> tuple[int, int, int] | None:
    """Returns ``(start, name_end, end)`` of the element's own opening tag in the block."""

    matched = set(candidate.matched)
    stable = [item for item in pick_stable_attributes(element.attributes, config) if item.name in matched]
    tag_name = re.compile(rf"<{re.escape(element.tag_name.strip())}(?=[\s>/]|$)", re.IGNORECASE)
    for match in tag_name.finditer(candidate.tag_text):
        end = _opening_tag_end(candidate.tag_text, match.end())
        head = candidate.tag_text[match.start() : end]
        if all(matches_attribute(head, item.name, item.value) for item in stable):
            return match.start(), match.end(), end
    return None


def _opening_tag_end(text: str, position: int) -> int:
    # First ">" outside quotes and JSX braces closes the tag.
    depth = 0
    quote = None
    index = position
    while index < len(text):
        char = text[index]
        if quote:
            if char == "\\":
                index += 1
            elif char == quote:
                quote = None
        elif char in "'\"`":
            quote = char
        elif char == "{":
            depth += 1
        elif char == "}":
            depth = max(0, depth - 1)
        elif char == ">" and depth == 0:
            return index + 1
        index += 1
    return len(text)


def _text_patterns(old_text: str) -> list[re.Pattern[str]]:
    escaped = re.escape(old_text)
    return [
        re.compile(rf"(?P<open>>\s*){escaped}(?P<close>\s*<)"),
        # The closing quote is captured so it is re-emitted as-is.
        re.compile(rf"(?P<open>['\"]){escaped}(?P<close>(?P=open))"),
        re.compile(rf"(?P<open>`){escaped}(?P<close>`)"),
    ]


def _replace_in_scope(scope: str, patterns: Sequence[re.Pattern[str]], new_text: str) -> str | None:
    def substitute(match: re.Match[str]) -> str:
        opening = match.group("open")
        closing = match.group("close") or opening
        return f"{opening}{new_text}{closing}"

    for pattern in patterns:
        if not pattern.search(scope):
            continue
        patched = pattern.sub(substitute, scope)
        if patched != scope:
            return patched
    return None


def _has_line(source_line) -> bool:
    if source_line is None or isinstance(source_line, bool):
        return False
    try:
        value = float(source_line)
    except (TypeError, ValueError):
        return False
    return math.isfinite(value) and value != 0


def _splice(text: str, span: tuple[int, int], replacement: str) -> str:
    start, end = span
    return text[:start] + replacement + text[end:]


def _style_key(prop: str) -> str:
    prop = prop.strip()
    if prop.startswith("--"):
        return f"'{prop}'"
    return _KEBAB_PATTERN.sub(lambda match: match.group(1).upper(), prop)


def _quote_style_value(value: str) -> str:
    escaped = str(value).strip().replace("\\", "\\\\").replace("'", "\\'")
    return f"'{escaped}'"


def _parse_style_object(body: str) -> dict[str, str] | None:
    entries: dict[str, str] = {}
    position = 0
    while body[position:].strip():
        match = _STYLE_ENTRY_PATTERN.match(body, position)
        if not match or match.end() == position:
            return None
        entries[match.group("key")] = match.group("value").strip()
        position = match.end()
    return entries


def _parse_style_string(body: str) -> dict[str, str]:
    entries: dict[str, str] = {}
    for declaration in body.split(";"):
        prop, separator, value = declaration.partition(":")
        if not separator or not prop.strip():
            continue
        entries[_style_key(prop)] = _quote_style_value(value)
    return entries
