"""Text-splitting helpers shared by the operator parsers."""

from __future__ import annotations

import re

from plansight.core.exceptions import PlanParseError

_HASH_ID_PATTERN = re.compile(r"#\d+L?")
_OPENERS = {"(": ")", "[": "]", "{": "}"}
_TYPE_PARAMETER_WORDS = frozenset({"array", "map", "struct"})

# Operator-name prefixes of accelerated engine variants
ENGINE_PREFIXES = ("!CometGpu", "Photon", "Comet", "Gpu")


def remove_hash_ids(text: str) -> str:
    """Drop expression ids such as ``#12`` or ``#12L``."""
    return _HASH_ID_PATTERN.sub("", text)


def split_top_level(text: str, separator: str = ",") -> list[str]:
    """Split on ``separator`` outside brackets, parentheses and quotes.

    A ``<`` directly after ``struct``, ``map`` or ``array`` opens a type
    parameter list, so ``struct<a:int,b:int>`` stays whole while ``(a<5)``
    is a comparison. Empty parts are dropped and the rest are stripped.

    Examples
    --------
    >>> split_top_level("a, f(b, c), [d, e]")
    ['a', 'f(b, c)', '[d, e]']
    """
    parts: list[str] = []
    depth = 0
    angle_depth = 0
    quote: str | None = None
    current: list[str] = []
    word = ""
    for char in text:
        if quote is not None:
            current.append(char)
            if char == quote:
                quote = None
            continue
        if char in ("'", '"', "`"):
            quote = char
        elif char == "<" and word.lower() in _TYPE_PARAMETER_WORDS:
            angle_depth += 1
        elif char == ">" and angle_depth > 0:
            angle_depth -= 1
        elif char in "([{":
            depth += 1
        elif char in ")]}" and depth > 0:
            depth -= 1
        elif char == separator and depth == 0 and angle_depth == 0:
            word = ""
            parts.append("".join(current).strip())
            current = []
            continue
        current.append(char)
        word = word + char if char.isalnum() or char == "_" else ""
    parts.append("".join(current).strip())
    return [part for part in parts if part]


def parse_bracket_list(text: str) -> list[str]:
    """Parse ``"[a, b(c, d)]"`` into ``["a", "b(c, d)"]``.

    Raises
    ------
    ValueError
        If ``text`` is not enclosed in square brackets
    """
    stripped = text.strip()
    if not (stripped.startswith("[") and stripped.endswith("]")):
        raise ValueError(f"Expected a bracketed list, got {stripped!r}")
    return split_top_level(stripped[1:-1])


def strip_outer_parens(text: str) -> str:
    """Remove parentheses that wrap the whole expression, repeatedly."""
    result = text.strip()
    while (
        result.startswith("(")
        and result.endswith(")")
        and _closing_index(result, 0) == len(result) - 1
    ):
        result = result[1:-1].strip()
    return result


def _closing_index(text: str, open_index: int) -> int:
    opener = text[open_index]
    closer = _OPENERS[opener]
    depth = 0
    for index in range(open_index, len(text)):
        if text[index] == opener:
            depth += 1
        elif text[index] == closer:
            depth -= 1
            if depth == 0:
                return index
    return -1


def take_balanced(text: str, start: int) -> tuple[str, int]:
    """Return the balanced group opening at ``start`` and the index after it.

    Raises
    ------
    ValueError
        If the group is not closed
    """
    end = _closing_index(text, start)
    if end < 0:
        raise ValueError(f"Unbalanced {text[start]!r} at position {start}")
    return text[start : end + 1], end + 1


def strip_engine_prefix(name: str) -> str:
    """Return ``name`` without an accelerated-engine prefix such as ``Gpu``."""
    for prefix in ENGINE_PREFIXES:
        if name.startswith(prefix) and len(name) > len(prefix) and name[len(prefix)].isupper():
            return name[len(prefix) :]
    return name


def strip_operator(text: str, operator: str) -> str:
    """Return the argument part of ``text`` after its leading operator word.

    The first word may carry an engine prefix (``GpuFilter`` for ``Filter``).

    Raises
    ------
    PlanParseError
        If ``text`` does not start with the operator
    """
    stripped = text.strip()
    head, _, rest = stripped.partition(" ")
    bare_head = head.split("(", 1)[0].split("[", 1)[0]
    if strip_engine_prefix(bare_head) != operator:
        raise PlanParseError(operator, f"expected text to start with {operator!r}", text)
    if bare_head != head:
        return stripped[len(bare_head) :].strip()
    return rest.strip()


def key_value_sections(text: str, keys: tuple[str, ...]) -> dict[str, str]:
    """Extract ``Key: value`` sections for the given keys.

    A section runs until the next known key at the top level or the end of
    text; a trailing comma separator is dropped.

    Examples
    --------
    >>> key_value_sections("Format: Parquet, ReadSchema: struct<a:int>", ("Format", "ReadSchema"))
    {'Format': 'Parquet', 'ReadSchema': 'struct<a:int>'}
    """
    pattern = re.compile(r"(?:^|[\s,])(" + "|".join(re.escape(key) for key in keys) + r"): ")
    matches = list(pattern.finditer(text))
    sections: dict[str, str] = {}
    for index, match in enumerate(matches):
        value_start = match.end()
        value_end = matches[index + 1].start() if index + 1 < len(matches) else len(text)
        value = text[value_start:value_end].strip().rstrip(",").strip()
        sections.setdefault(match.group(1), value)
    return sections


def parse_int(value: str, operator: str, field: str, text: str) -> int:
    """Parse an integer field, raising :class:`PlanParseError` on failure."""
    try:
        return int(value.strip().replace(",", ""))
    except ValueError as e:
        raise PlanParseError(operator, f"{field} is not an integer: {value!r}", text) from e
