"""Route resolution: dynamic route descriptors to concrete paths."""

from __future__ import annotations

import re
from typing import List, Optional, Pattern, Sequence, Union

from .errors import ConfigurationError


RouteDescriptor = Union[str, Pattern[str], Sequence[Union[str, Pattern[str]]]]

_ESCAPE_SAMPLES = {"d": "0", "D": "a", "w": "a", "W": "-", "s": " ", "S": "a"}
_ZERO_WIDTH_ESCAPES = {"b", "B", "A", "Z", "z", "G"}
_PATH_TOKEN = re.compile(r":([A-Za-z_][A-Za-z0-9_]*)")


def get_sdk_path(path: RouteDescriptor) -> str:
    """Resolve a route descriptor to one concrete path.

    Lists resolve to their last element. Compiled patterns resolve to a
    deterministic sample string that the pattern matches.
    """
    if isinstance(path, (list, tuple)):
        candidates = list(path)
        resolved = get_sdk_path(candidates.pop()) if candidates else None
    elif isinstance(path, re.Pattern):
        resolved = generate_string_from_regex(path)
    else:
        resolved = path

    if not resolved:
        raise ConfigurationError("Path is not defined")
    return resolved


def openapi_compliant_path(path: str) -> str:
    return _PATH_TOKEN.sub(r"{\1}", path)


def generate_string_from_regex(regex: Union[str, Pattern[str]]) -> str:
    source = regex.pattern if isinstance(regex, re.Pattern) else regex
    return _sample(source)


def _sample(source: str) -> str:
    units: List[str] = []
    i = 0
    while i < len(source):
        char = source[i]
        if char == "\\":
            escaped = source[i + 1] if i + 1 < len(source) else ""
            if escaped not in _ZERO_WIDTH_ESCAPES:
                units.append(_ESCAPE_SAMPLES.get(escaped, escaped))
            i += 2
        elif char == ".":
            units.append("a")
            i += 1
        elif char in "^$":
            i += 1
        elif char == "|":
            # first alternative only
            break
        elif char == "[":
            end = _class_end(source, i)
            units.append(_sample_class(source[i + 1 : end]))
            i = end + 1
        elif char == "(":
            end = _group_end(source, i)
            inner = _strip_group_prefix(source[i + 1 : end])
            if inner is not None:
                units.append(_sample(inner))
            i = end + 1
        elif char == "{":
            end = source.find("}", i)
            if end == -1:
                raise ConfigurationError(f"Unmatched {{ in pattern {source!r}")
            minimum = source[i + 1 : end].split(",")[0].strip()
            count = int(minimum) if minimum.isdigit() else 1
            if units:
                units[-1] = units[-1] * max(count, 1)
            i = end + 1
        elif char in "*+?":
            # one occurrence of the previous unit is already emitted
            i += 1
        else:
            units.append(char)
            i += 1
    return "".join(units)


def _strip_group_prefix(inner: str) -> Optional[str]:
    if not inner.startswith("?"):
        return inner
    if inner.startswith(("?=", "?!", "?<=", "?<!")):
        return None
    if inner.startswith(("?P<", "?<")):
        return inner[inner.index(">") + 1 :]
    if inner.startswith("?:"):
        return inner[2:]
    return inner[1:]


def _group_end(source: str, start: int) -> int:
    depth = 0
    i = start
    while i < len(source):
        char = source[i]
        if char == "\\":
            i += 2
            continue
        if char == "[":
            i = _class_end(source, i) + 1
            continue
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
            if depth == 0:
                return i
        i += 1
    raise ConfigurationError(f"Unmatched ( in pattern {source!r}")


def _class_end(source: str, start: int) -> int:
    i = start + 1
    if i < len(source) and source[i] == "^":
        i += 1
    if i < len(source) and source[i] == "]":
        i += 1
    while i < len(source):
        if source[i] == "\\":
            i += 2
            continue
        if source[i] == "]":
            return i
        i += 1
    raise ConfigurationError(f"Unmatched [ in pattern {source!r}")


def _sample_class(body: str) -> str:
    if body.startswith("^"):
        excluded = body[1:]
        for candidate in "a0_-":
            if candidate not in excluded:
                return candidate
        return "z"
    if body.startswith("\\") and len(body) > 1:
        return _ESCAPE_SAMPLES.get(body[1], body[1])
    return body[0]
