"""Accessors for untyped JSON payloads (YouTube page state, Reddit listings)."""

from typing import Any, Iterator, Optional


def dig(obj: Any, *path: Any) -> Optional[Any]:
    """Follow dict keys / list indexes, returning None as soon as one is missing."""
    current = obj
    for key in path:
        if isinstance(key, int):
            if not isinstance(current, list) or not -len(current) <= key < len(current):
                return None
            current = current[key]
        else:
            if not isinstance(current, dict) or key not in current:
                return None
            current = current[key]
    return current


def dig_str(obj: Any, *path: Any) -> str:
    value = dig(obj, *path)
    return value if isinstance(value, str) else ""


def walk(obj: Any) -> Iterator[tuple[str, Any]]:
    """Depth-first iteration over every (key, value) pair in nested dicts/lists."""
    stack = [obj]
    while stack:
        current = stack.pop()
        if isinstance(current, dict):
            children = list(current.items())
            for key, value in children:
                yield key, value
            stack.extend(value for _, value in reversed(children))
        elif isinstance(current, list):
            stack.extend(reversed(current))
