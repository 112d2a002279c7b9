from __future__ import annotations

import json
from pathlib import Path

from patchlocator.core.metadata import PatchAttempt


class PatchAuditLogger:
    """Persists one JSON line per locate-and-patch attempt."""

    def __init__(self, root: str | Path = "artifacts") -> None:
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)
        self.attempts_path = self.root / "patch_attempts.jsonl"

    def write(self, attempt: PatchAttempt) -> None:
        payload = {
            "file_path": attempt.file_path,
            "change_kind": attempt.change_kind,
            "reported_line": attempt.reported_line,
            "effective_line": attempt.effective_line,
            "strategy": attempt.strategy,
            "generated_by": attempt.generated_by,
            "success": attempt.success,
            "duration_ms": attempt.duration_ms,
            "detail": attempt.detail,
        }
        with self.attempts_path.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(payload) + "\n")

    def read_attempts(self) -> list[dict]:
        if not self.attempts_path.exists():
            return []
        with self.attempts_path.open("r", encoding="utf-8") as handle:
            return [json.loads(line) for line in handle if line.strip()]
