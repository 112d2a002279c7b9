from __future__ import annotations

from patchlocator.utils.tag_block import matches_attribute, read_tag_block


def test_reader_joins_wrapped_opening_tag():
    lines = [
        "      <img",
        '        src="/assets/hero.png"',
        '        alt="Mountain sunrise"',
        "      />",
        "      <p>after</p>",
    ]
    block = read_tag_block(lines, 0)
    assert (block.start, block.end) == (0, 3)
    assert block.text == "\n".join(lines[:4])


def test_reader_stops_on_single_line_tag():
    lines = ['<a href="/docs">Docs</a>', "<p>next</p>"]
    block = read_tag_block(lines, 0)
    assert block.end == 0
    assert block.text == lines[0]


def test_reader_is_capped_on_unterminated_tags():
    lines = ["<div"] + [f'  data-row="{index}"' for index in range(30)]
    block = read_tag_block(lines, 0)
    assert block.end == 11
    assert block.text.count("\n") == 11


def test_reader_stops_at_end_of_file():
    block = read_tag_block(["<div", ' title="x"'], 0)
    assert block.end == 1


def test_three_line_tag_is_read_and_matched_as_one_unit():
    lines = [
        "<button",
        '  aria-label="Open navigation menu"',
        '  type="button">',
        "</button>",
    ]
    block = read_tag_block(lines, 0)
    assert block.end == 2
    assert matches_attribute(block.text, "aria-label", "Open navigation menu")
    assert matches_attribute(block.text, "type", "button")


def test_matcher_requires_attribute_name():
    assert not matches_attribute('<path fill="M10 10" />', "d", "M10 10")
    assert not matches_attribute("", "d", "M10 10")
    assert not matches_attribute('<path d="M10 10" />', "d", "")


def test_matcher_accepts_literal_value():
    assert matches_attribute('<path d="M10 10 L20 10 L20 20 Z" />', "d", "M10 10 L20 10 L20 20 Z")


def test_matcher_accepts_long_value_prefix():
    value = "M12 2C6.48 2 2 6.48 2 12s4.48 10 10 10 10-4.48 10-10S17.52 2 12 2z"
    tag_text = '<path d="M12 2C6.48 2 2 6.48 2 12s4.48 10 10 10 {...rest}" />'
    assert value not in tag_text
    assert matches_attribute(tag_text, "d", value)


def test_matcher_tolerates_rewrapped_whitespace():
    value = "M 10 10 L 20 20 L 30 30 L 40 40"
    tag_text = '<path\n  d="M 10 10\n        L 20 20 L 30 30 L 40 40"\n/>'
    assert matches_attribute(tag_text, "d", value)


def test_matcher_rejects_unrelated_value():
    assert not matches_attribute('<path d="M0 0h24v24H0z" />', "d", "M10 10 L20 10 L20 20 Z")
