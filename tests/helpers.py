from __future__ import annotations

import json

from patchlocator.fallback.client import PatchFallbackGenerator

PATH_D_OTHER = "M0 0h24v24H0z"
PATH_D_TARGET = "M10 10 L20 10 L20 20 Z"


def filler(count: int) -> str:
    return "\n".join(f"// filler {index + 1}" for index in range(count))


def switch_component_source() -> str:
    return "\n".join(
        [
            "import React from 'react';",
            "export function Demo() {",
            "  const foo: string = 'x';",
            "  switch (foo) {",
            "    default: return 'Joined';",
            "  }",
            "}",
            "",
        ]
    )


def landing_page_source() -> str:
    return "\n".join(
        [
            "import React from 'react';",
            "// Download (this is an earlier occurrence that should NOT be changed)",
            filler(40),
            "export function LandingPage() {",
            "  return (",
            "    <main>",
            filler(140),
            '      <button className="cta">Download</button>',
            "    </main>",
            "  );",
            "}",
            "",
        ]
    )


def icon_source() -> str:
    return "\n".join(
        [
            "import React from 'react';",
            filler(60),
            "export function IconDemo() {",
            "  return (",
            "    <div>",
            filler(80),
            '      <svg width="24" height="24" viewBox="0 0 24 24">',
            f'        <path d="{PATH_D_OTHER}" />',
            f'        <path d="{PATH_D_TARGET}" />',
            "      </svg>",
            "    </div>",
            "  );",
            "}",
            "",
        ]
    )


def gallery_source() -> str:
    return "\n".join(
        [
            "export function Gallery() {",
            "  return (",
            "    <section>",
            "      <img",
            '        src="/assets/hero.png"',
            '        alt="Mountain sunrise over the valley"',
            "      />",
            '      <img src="/assets/thumb.png" alt="Thumbnail" />',
            "    </section>",
            "  );",
            "}",
        ]
    )


def line_of(source: str, needle: str) -> int:
    for index, line in enumerate(source.split("\n")):
        if needle in line:
            return index + 1
    raise AssertionError(f"{needle!r} not found in source")


def assert_balanced(source: str) -> None:
    """Fails when quotes or brackets in JSX/TSX source no longer pair up."""

    pairs = {")": "(", "]": "[", "}": "{"}
    stack: list[tuple[str, int]] = []
    for number, line in enumerate(source.split("\n"), start=1):
        quote = None
        index = 0
        while index < len(line):
            char = line[index]
            if quote:
                if char == "\\":
                    index += 1
                elif char == quote:
                    quote = None
            elif line.startswith("//", index):
                break
            elif char in "'\"`":
                quote = char
            elif char in "([{":
                stack.append((char, number))
            elif char in pairs:
                assert stack and stack[-1][0] == pairs[char], f"unmatched {char!r} on line {number}"
                stack.pop()
            index += 1
        assert quote is None, f"unterminated {quote} string on line {number}"
    assert not stack, f"unclosed {stack[-1][0]!r} from line {stack[-1][1]}"


class RecordingFallback(PatchFallbackGenerator):
    """Fallback double that returns a canned response and keeps the prompts it saw."""

    provider_name = "recording"

    def __init__(self, response: str = "", error: Exception | None = None) -> None:
        self.response = response
        self.error = error
        self.prompts: list[tuple[str, str]] = []

    def generate_patch(self, system_prompt, user_prompt):
        self.prompts.append((system_prompt, user_prompt))
        if self.error is not None:
            raise self.error
        return self.response

    @property
    def requests(self) -> list[dict]:
        """JSON request part of each user prompt."""

        parsed = []
        for _, user_prompt in self.prompts:
            request_text = user_prompt.split("\n\nCode snippet:\n", 1)[0]
            parsed.append(json.loads(request_text.removeprefix("Request:\n")))
        return parsed
