from __future__ import annotations

import pytest

from patchlocator.config.schema import ElementDescriptor
from patchlocator.core.line_deriver import (
    clamp_line,
    derive_effective_line,
    derive_text_target_line,
    is_reliable_line,
)
from tests.helpers import PATH_D_TARGET, icon_source, landing_page_source, line_of


@pytest.mark.parametrize(
    "value, expected",
    [
        (None, False),
        (0, False),
        (4, False),
        (5, True),
        (120, True),
        (float("nan"), False),
        (float("inf"), False),
        ("oops", False),
        (True, False),
    ],
)
def test_reliable_line_floor(value, expected):
    assert is_reliable_line(value) is expected


def test_clamp_line_stays_in_range():
    assert clamp_line(0, 10) == 1
    assert clamp_line(-3, 10) == 1
    assert clamp_line(99, 10) == 10
    assert clamp_line(float("nan"), 10) == 1
    assert clamp_line(4, 0) == 1


def test_reliable_line_is_kept_and_clamped():
    lines = ["<div>"] * 10
    element = ElementDescriptor(tagName="div", attributes={"aria-label": "Main"})
    assert derive_effective_line(lines, 7, element) == 7
    assert derive_effective_line(lines, 50, element) == 10


def test_unreliable_line_is_derived_from_attributes(path_element):
    source = icon_source()
    derived = derive_effective_line(source.split("\n"), 0, path_element)
    assert derived == line_of(source, PATH_D_TARGET)
    assert derived > 50


def test_every_stable_attribute_must_match():
    source = icon_source()
    element = ElementDescriptor(
        tagName="path",
        attributes={"d": PATH_D_TARGET, "aria-label": "Close the dialog"},
    )
    assert derive_effective_line(source.split("\n"), 0, element) == 1


def test_no_stable_attributes_falls_back_to_first_line():
    source = icon_source()
    element = ElementDescriptor(tagName="path", className="icon", id="close")
    assert derive_effective_line(source.split("\n"), None, element) == 1


def test_unknown_tag_falls_back_to_first_line():
    source = icon_source()
    element = ElementDescriptor(attributes={"d": PATH_D_TARGET})
    assert derive_effective_line(source.split("\n"), 2, element) == 1


def test_text_target_line_skips_occurrences_outside_markup():
    source = landing_page_source()
    derived = derive_text_target_line(source.split("\n"), "Download")
    assert derived == line_of(source, '<button className="cta">Download</button>')


def test_text_target_line_is_none_without_markup_context():
    lines = ["const label = 'Download';", "export default label;"]
    assert derive_text_target_line(lines, "Download") is None
    assert derive_text_target_line(lines, "") is None
