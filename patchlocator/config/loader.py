from __future__ import annotations

import json
from pathlib import Path

from patchlocator.config.schema import LocatorConfig, PatchRequest


class ConfigLoader:
    """Loads and validates the JSON locator configuration and request files."""

    @staticmethod
    def load(path: str | Path) -> LocatorConfig:
        return LocatorConfig.model_validate(_read_json(path))

    @staticmethod
    def load_request(path: str | Path) -> PatchRequest:
        return PatchRequest.model_validate(_read_json(path))


def _read_json(path: str | Path):
    config_path = Path(path)
    with config_path.open("r", encoding="utf-8") as handle:
        return json.load(handle)
