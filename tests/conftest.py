from __future__ import annotations

from pathlib import Path

import pytest

from patchlocator.config.loader import ConfigLoader
from patchlocator.config.schema import ElementDescriptor
from patchlocator.logging.audit import PatchAuditLogger
from tests.helpers import PATH_D_TARGET


@pytest.fixture()
def locator_config():
    config_path = Path(__file__).resolve().parents[1] / "config" / "locator.json"
    return ConfigLoader.load(config_path)


@pytest.fixture()
def audit_logger(tmp_path):
    return PatchAuditLogger(tmp_path / "artifacts")


@pytest.fixture()
def path_element():
    return ElementDescriptor(tagName="path", className="", id="", attributes={"d": PATH_D_TARGET}, text="")
