from __future__ import annotations

import logging
from time import perf_counter

from patchlocator.config.schema import (
    DEFAULT_CONFIG,
    AttributeChange,
    LocatorConfig,
    PatchRequest,
    StyleChange,
    TextChange,
)
from patchlocator.core.exceptions import FallbackResponseError, PatchLocatorError
from patchlocator.core.line_deriver import (
    clamp_line,
    derive_effective_line,
    derive_text_target_line,
    is_reliable_line,
)
from patchlocator.core.metadata import PatchAttempt, SourcePatch
from patchlocator.core.patchers import try_attribute_change, try_style_change, try_text_change
from patchlocator.fallback.client import PatchFallbackGenerator
from patchlocator.fallback.parser import parse_patch_response
from patchlocator.fallback.prompts import SYSTEM_PROMPT, build_fallback_payload, build_user_prompt, snippet_window
from patchlocator.logging.audit import PatchAuditLogger
from patchlocator.utils.paths import is_absolute_source_path, is_blocked_path, resolve_file_path

log = logging.getLogger(__name__)


class SourcePatchLocator:
    """Tries the deterministic fast path, then escalates to an optional fallback generator."""

    def __init__(
        self,
        config: LocatorConfig | None = None,
        fallback: PatchFallbackGenerator | None = None,
        audit_logger: PatchAuditLogger | None = None,
        project_path: str | None = None,
    ) -> None:
        self.config = config or DEFAULT_CONFIG
        self.fallback = fallback
        self.audit_logger = audit_logger
        self.project_path = project_path

    def locate_and_patch(self, request: PatchRequest) -> SourcePatch | None:
        started = perf_counter()
        file_path = self._resolve(request.file_path)
        change = request.change
        strategy = ""
        effective_line: int | None = None
        detail = ""
        result: SourcePatch | None = None
        try:
            if file_path and is_blocked_path(
                file_path,
                self.config.blocked_path_fragments,
                self.config.allowed_path_fragments,
            ):
                detail = "blocked path"
                log.info("Refusing to patch protected file %s", file_path)
                return None

            lines = request.source_text.split("\n")
            patched, strategy, effective_line = self._fast_path(request, lines)
            if patched is not None and patched != request.source_text:
                result = self._build_patch(request, file_path, patched, effective_line, "fast-path", strategy, started)
                log.info("Fast path patched %s via %s", file_path or "<memory>", strategy)
                return result

            detail = "fast path declined"
            if self.fallback is None:
                log.debug("Fast path declined for %s change and no fallback is configured", change.kind)
                return None
            result = self._run_fallback(request, lines, file_path, effective_line, started)
            if result is not None:
                strategy = result.strategy
                detail = ""
            return result
        except PatchLocatorError as exc:
            detail = str(exc)
            raise
        finally:
            if self.audit_logger is not None:
                self.audit_logger.write(
                    PatchAttempt(
                        file_path=file_path,
                        change_kind=change.kind,
                        reported_line=request.reported_source_line,
                        effective_line=effective_line,
                        strategy=strategy,
                        generated_by=result.generated_by if result else "",
                        success=result is not None,
                        duration_ms=_elapsed_ms(started),
                        detail=detail,
                    )
                )

    def _fast_path(self, request: PatchRequest, lines: list[str]) -> tuple[str | None, str, int | None]:
        change = request.change
        content = request.source_text
        reported = request.reported_source_line

        if isinstance(change, TextChange):
            patched = try_text_change(content, change.old_text, change.new_text, reported, self.config)
            if patched is not None or is_reliable_line(reported, self.config):
                return patched, "text:reported-line", _line_or_none(reported, len(lines))
            derived = derive_text_target_line(lines, change.old_text)
            if derived is None:
                return None, "text:derived-line", None
            log.debug("Retrying text change around derived line %s", derived)
            patched = try_text_change(content, change.old_text, change.new_text, derived, self.config)
            return patched, "text:derived-line", derived

        effective = derive_effective_line(lines, reported, request.element, self.config)
        source = "reported-line" if is_reliable_line(reported, self.config) else "derived-line"
        if isinstance(change, StyleChange):
            patched = try_style_change(content, effective, request.element, change.css_changes, self.config)
            return patched, f"style:{source}", effective
        if isinstance(change, AttributeChange):
            patched = try_attribute_change(
                content,
                effective,
                request.element,
                change.name,
                change.new_value,
                self.config,
            )
            return patched, f"attribute:{source}", effective
        raise PatchLocatorError(f"Unsupported change kind: {change.kind}")

    def _run_fallback(
        self,
        request: PatchRequest,
        lines: list[str],
        file_path: str,
        effective_line: int | None,
        started: float,
    ) -> SourcePatch | None:
        reliable = is_reliable_line(request.reported_source_line, self.config)
        target = effective_line or clamp_line(request.reported_source_line, len(lines))
        start, end = snippet_window(len(lines), target, self.config.fallback_context_lines)
        if start >= end:
            return None
        payload = build_fallback_payload(
            lines=lines,
            start=start,
            end=end,
            target_line=target,
            line_reliable=reliable,
            element=request.element,
            change=request.change,
            file_path=file_path,
        )
        try:
            raw = self.fallback.generate_patch(SYSTEM_PROMPT, build_user_prompt(payload))
        except Exception as exc:  # noqa: BLE001 - provider errors are surfaced as locator errors.
            raise PatchLocatorError(f"Fallback generator failed: {exc}") from exc
        try:
            snippet = parse_patch_response(raw)
        except FallbackResponseError as exc:
            log.warning("Discarding %s fallback output: %s", self.fallback.provider_name, exc)
            return None

        patched = "\n".join(lines[:start] + snippet.split("\n") + lines[end:])
        if patched == request.source_text:
            log.debug("Fallback returned the snippet unchanged")
            return None
        strategy = f"{request.change.kind}:fallback:{self.fallback.provider_name}"
        return self._build_patch(request, file_path, patched, target, "fallback", strategy, started)

    def _build_patch(
        self,
        request: PatchRequest,
        file_path: str,
        patched: str,
        line: int | None,
        generated_by: str,
        strategy: str,
        started: float,
    ) -> SourcePatch:
        return SourcePatch(
            file_path=file_path,
            original_content=request.source_text,
            patched_content=patched,
            line_number=line or 0,
            generated_by=generated_by,
            strategy=strategy,
            duration_ms=_elapsed_ms(started),
        )

    def _resolve(self, file_path: str) -> str:
        if not file_path or not (self.project_path or is_absolute_source_path(file_path)):
            return file_path
        return resolve_file_path(file_path, self.project_path)


def _line_or_none(source_line, line_count: int) -> int | None:
    if source_line is None:
        return None
    return clamp_line(source_line, line_count)


def _elapsed_ms(started: float) -> float:
    return round((perf_counter() - started) * 1000, 3)
