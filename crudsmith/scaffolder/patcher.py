"""Text-pattern edits on existing PHP sources.

Used to customise framework-generated files in place: swap a method for a
freshly rendered one, add missing ``use`` imports, insert a method before a
class's closing brace. Method bodies are located by brace matching that
skips string literals and comments, so braces inside quoted strings or
closures do not end the match early.
"""

from __future__ import annotations

import re
from typing import Iterable, Optional


class PatchError(Exception):
    """Raised when a required anchor is missing from the source."""


# ---------------------------------------------------------------------------
# Method lookup
# ---------------------------------------------------------------------------


def _method_pattern(name: str) -> re.Pattern[str]:
    return re.compile(
        rf"^[ \t]*(?:(?:public|protected|private|static|final|abstract)\s+)*"
        rf"function\s+{re.escape(name)}\s*\(",
        re.MULTILINE,
    )


def _matching_brace(content: str, open_index: int) -> Optional[int]:
    """Index of the ``}`` closing the ``{`` at *open_index*, or None."""
    depth = 0
    i = open_index
    length = len(content)
    while i < length:
        char = content[i]
        if char in ("'", '"'):
            i += 1
            while i < length and content[i] != char:
                if content[i] == "\\":
                    i += 1
                i += 1
        elif content.startswith("//", i) or char == "#":
            newline = content.find("\n", i)
            i = length if newline == -1 else newline
        elif content.startswith("/*", i):
            end = content.find("*/", i + 2)
            i = length if end == -1 else end + 1
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return i
        i += 1
    return None


def find_method(content: str, name: str) -> Optional[tuple[int, int]]:
    """Return the ``(start, end)`` span of method *name*, declaration included.

    ``start`` is the beginning of the declaration's line and ``end`` is one
    past its closing brace.
    """
    match = _method_pattern(name).search(content)
    if match is None:
        return None
    open_index = content.find("{", match.end())
    if open_index == -1:
        return None
    close_index = _matching_brace(content, open_index)
    if close_index is None:
        return None
    return match.start(), close_index + 1


def has_method(content: str, name: str) -> bool:
    return _method_pattern(name).search(content) is not None


def replace_method(content: str, name: str, replacement: str) -> str:
    """Replace method *name* (declaration and body) with *replacement*.

    Raises:
        PatchError: If the method cannot be located.
    """
    span = find_method(content, name)
    if span is None:
        raise PatchError(f"Method '{name}' not found")
    start, end = span
    return content[:start] + replacement.rstrip("\n") + content[end:]


# ---------------------------------------------------------------------------
# Imports and insertion
# ---------------------------------------------------------------------------

_USE_RE = re.compile(r"^use\s+[^;]+;[ \t]*$", re.MULTILINE)
_NAMESPACE_RE = re.compile(r"^namespace\s+[^;]+;[ \t]*$", re.MULTILINE)
_OPEN_TAG_RE = re.compile(r"^<\?php[ \t]*$", re.MULTILINE)


def add_use_statements(content: str, imports: Iterable[str]) -> str:
    """Add ``use <import>;`` lines that are not present yet.

    New lines go after the last top-level ``use`` statement, else after the
    namespace declaration, else after the opening tag.

    Raises:
        PatchError: If there is no anchor to insert after.
    """
    missing = []
    for name in imports:
        line = f"use {name};"
        if not re.search(rf"^{re.escape(line)}[ \t]*$", content, re.MULTILINE) and line not in missing:
            missing.append(line)
    if not missing:
        return content

    class_match = re.search(r"^(?:final\s+|abstract\s+)?class\s", content, re.MULTILINE)
    header_end = class_match.start() if class_match else len(content)
    header_uses = [m for m in _USE_RE.finditer(content) if m.start() < header_end]

    block = "\n".join(missing)
    if header_uses:
        anchor = header_uses[-1].end()
        return content[:anchor] + "\n" + block + content[anchor:]

    anchor_match = _NAMESPACE_RE.search(content) or _OPEN_TAG_RE.search(content)
    if anchor_match is None:
        raise PatchError("No 'use', 'namespace' or '<?php' anchor found")
    anchor = anchor_match.end()
    return content[:anchor] + "\n\n" + block + content[anchor:]


def insert_before_final_brace(content: str, snippet: str) -> str:
    """Insert *snippet* just before the last ``}`` of *content*.

    Raises:
        PatchError: If the content has no closing brace.
    """
    index = content.rfind("}")
    if index == -1:
        raise PatchError("No closing brace found")
    head = content[:index].rstrip()
    return f"{head}\n\n{snippet.rstrip()}\n{content[index:]}"
