"""Inline meta-instructions: `Duration: H:MM:SS` and `Environment: tag, tag`.

Instructions are written as plain text inside a step. They change the walk
state instead of producing content.
"""

from datetime import timedelta

from bs4.element import PageElement

from stepdoc.markdown.markup import is_text, stringify

META_SEPARATOR = ":"
META_DURATION = "duration"
META_ENVIRONMENT = "environment"
META_KEYS = {META_DURATION, META_ENVIRONMENT}

# Multipliers for duration components, left to right
_DURATION_FACTORS = (timedelta(hours=1), timedelta(minutes=1), timedelta(seconds=1))


def split_instruction(line: str) -> tuple[str, str] | None:
    """Split `key: value` into (lowercased key, trimmed value)."""
    key, sep, value = line.strip().partition(META_SEPARATOR)
    if not sep:
        return None
    return key.strip().lower(), value.strip()


def take_instructions(text: str) -> tuple[list[tuple[str, str]], str]:
    """Split the leading instruction lines off text.

    Reading stops at the first non-blank line that is not a known `key: value`
    instruction. That line and everything after it is returned as the rest.
    """
    instructions: list[tuple[str, str]] = []
    lines = text.split("\n")
    for i, line in enumerate(lines):
        if not line.strip():
            continue
        parsed = split_instruction(line)
        if parsed is None or parsed[0] not in META_KEYS:
            return instructions, "\n".join(lines[i:])
        instructions.append(parsed)
    return instructions, ""


def is_meta(node: PageElement | None) -> bool:
    """Check if node is a text fragment holding a known instruction."""
    if node is None or not is_text(node):
        return False
    text = stringify(node, keep_newlines=True).strip()
    if not text:
        return False
    parsed = split_instruction(text.splitlines()[0])
    return parsed is not None and parsed[0] in META_KEYS


def parse_duration(value: str) -> timedelta:
    """Parse up to three colon-separated components as hours:minutes:seconds.

    Components are right-aligned, except that a single bare value means minutes.
    Components that are not integers contribute nothing.
    """
    parts = value.split(":", len(_DURATION_FACTORS) - 1)
    if len(parts) == 1:
        parts.append("0")  # default unit is minutes
    offset = len(_DURATION_FACTORS) - len(parts)
    total = timedelta()
    for i, part in enumerate(parts):
        try:
            n = int(part)
        except ValueError:
            continue
        total += n * _DURATION_FACTORS[offset + i]
    return total


def round_duration(d: timedelta) -> timedelta:
    """Round d up to the next whole minute.

    Ex:
     44s --> 1m
     59s --> 1m
     60s --> 1m
     61s --> 2m
    """
    minute = timedelta(minutes=1)
    rd = (d // minute) * minute
    if rd < d:
        rd += minute
    return rd


def parse_environment(value: str) -> list[str]:
    """Split a comma list into trimmed, lowercased, unique tags, keeping first-seen order."""
    tags: list[str] = []
    for part in value.split(","):
        tag = part.strip().lower()
        if tag and tag not in tags:
            tags.append(tag)
    return tags
