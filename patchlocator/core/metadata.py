from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(slots=True)
class StableAttribute:
    name: str
    value: str
    weight: int


@dataclass(slots=True)
class TagBlock:
    start: int
    end: int
    text: str


@dataclass(slots=True)
class MatchCandidate:
    start: int
    end: int
    tag_text: str
    score: int
    matched: list[str] = field(default_factory=list)


@dataclass(slots=True)
class SourcePatch:
    file_path: str
    original_content: str
    patched_content: str
    line_number: int
    generated_by: str = "fast-path"
    strategy: str = ""
    duration_ms: float = 0.0


@dataclass(slots=True)
class PatchAttempt:
    file_path: str
    change_kind: str
    reported_line: float | None
    effective_line: int | None
    strategy: str
    generated_by: str
    success: bool
    duration_ms: float
    detail: str = ""
