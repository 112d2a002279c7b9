from __future__ import annotations

from abc import ABC, abstractmethod


class PatchFallbackGenerator(ABC):
    """Provider-neutral interface for the slow path taken when the fast path declines.

    The locator renders both prompts with ``patchlocator.fallback.prompts``
    (``SYSTEM_PROMPT`` and ``build_user_prompt``); implementations send them
    to a model and return the rewritten snippet as raw output.
    """

    provider_name = "unknown"

    @abstractmethod
    def generate_patch(self, system_prompt: str, user_prompt: str) -> str:
        raise NotImplementedError
