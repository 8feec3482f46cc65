from __future__ import annotations

from typing import Any, Iterator


def iter_objects_with_key(value: Any, key: str) -> Iterator[dict[str, Any]]:
    """Yield every JSON object in ``value`` that has ``key``, depth-first.

    A matching object is yielded before anything nested inside it, and
    siblings are visited in document order. Scalars are ignored.
    """
    if isinstance(value, dict):
        if key in value:
            yield value
        for child in value.values():
            yield from iter_objects_with_key(child, key)
    elif isinstance(value, list):
        for child in value:
            yield from iter_objects_with_key(child, key)


def find_objects_with_key(value: Any, key: str) -> list[dict[str, Any]]:
    return list(iter_objects_with_key(value, key))
