"""
Path Mutation Engine

Reads and writes single leaves of a TeachingPlan by path.

A path is a dotted string such as ``"objectives.vocab.core"`` or
``"steps.2.design"``, or an equivalent sequence (``("steps", 2, "design")``).
Segments name fields by wire name (``lessonNo``) or attribute name
(``lesson_no``); list items are addressed by a non-negative integer index.

Writes are copy-on-write: every node on the path is re-created and every
other subtree is carried over as the very same object.
"""

from functools import lru_cache
from typing import Dict, Iterator, Sequence, Tuple, Type, Union

from pydantic import BaseModel

from lessonplan.errors import InvalidPathError

Segment = Union[str, int]
PathLike = Union[str, Sequence[Segment]]


def parse_path(path: PathLike) -> Tuple[Segment, ...]:
    """
    Split a path into segments.

    Segments made of ASCII digits become ints. Empty paths and empty
    segments are rejected with InvalidPathError.
    """
    if isinstance(path, str):
        raw_segments = path.split(".")
    else:
        try:
            raw_segments = list(path)
        except TypeError:
            raise InvalidPathError(path, "path is not a string or sequence") from None

    if not raw_segments:
        raise InvalidPathError(path, "path is empty")

    segments = []
    for segment in raw_segments:
        if isinstance(segment, bool):
            raise InvalidPathError(path, f"segment {segment!r} is not a field name or index")
        if isinstance(segment, int):
            segments.append(segment)
        elif isinstance(segment, str) and segment.strip():
            text = segment.strip()
            segments.append(int(text) if text.isascii() and text.isdecimal() else text)
        else:
            raise InvalidPathError(path, f"segment {segment!r} is not a field name or index")
    return tuple(segments)


def format_path(segments: Sequence[Segment]) -> str:
    return ".".join(str(segment) for segment in segments)


@lru_cache(maxsize=None)
def _field_names(model_cls: Type[BaseModel]) -> Dict[str, str]:
    """Map both wire names and attribute names to attribute names."""
    names = {}
    for attribute, field in model_cls.model_fields.items():
        names[attribute] = attribute
        if field.alias:
            names[field.alias] = attribute
    return names


def _resolve_field(node: BaseModel, segment: Segment, path) -> str:
    if not isinstance(segment, str):
        raise InvalidPathError(path, f"{type(node).__name__} has no item {segment!r}")
    attribute = _field_names(type(node)).get(segment)
    if attribute is None:
        raise InvalidPathError(path, f"{type(node).__name__} has no field {segment!r}")
    return attribute


def _resolve_index(items: tuple, segment: Segment, path) -> int:
    if not isinstance(segment, int):
        raise InvalidPathError(path, f"list segment {segment!r} is not an index")
    if segment < 0 or segment >= len(items):
        raise InvalidPathError(path, f"index {segment} out of range for {len(items)} items")
    return segment


def _set(node, segments: Tuple[Segment, ...], value: str, path):
    head, rest = segments[0], segments[1:]

    if isinstance(node, BaseModel):
        attribute = _resolve_field(node, head, path)
        child = getattr(node, attribute)
        if not rest:
            if not isinstance(child, str):
                raise InvalidPathError(path, f"{head!r} is not a text field")
            return node.model_copy(update={attribute: value})
        return node.model_copy(update={attribute: _set(child, rest, value, path)})

    if isinstance(node, tuple):
        index = _resolve_index(node, head, path)
        if not rest:
            raise InvalidPathError(path, "list items are records, not text fields")
        item = _set(node[index], rest, value, path)
        return node[:index] + (item,) + node[index + 1:]

    raise InvalidPathError(path, f"cannot descend into text field at {head!r}")


def set_value(doc: BaseModel, path: PathLike, value: str):
    """
    Return a copy of ``doc`` with the leaf at ``path`` set to ``value``.

    Args:
        doc: The current plan (or any plan node)
        path: Path to a text leaf
        value: New text

    Returns:
        A new document sharing every subtree not on the path with ``doc``

    Raises:
        InvalidPathError: If the path does not end on a text leaf
        TypeError: If ``value`` is not a string
    """
    if not isinstance(value, str):
        raise TypeError(f"Plan fields hold text, got {type(value).__name__}")
    segments = parse_path(path)
    return _set(doc, segments, value, path)


def get_value(doc, path: PathLike) -> str:
    """Return the text at ``path``, or "" if any part of it is missing."""
    try:
        segments = parse_path(path)
    except InvalidPathError:
        return ""

    node = doc
    for segment in segments:
        if isinstance(node, BaseModel) and isinstance(segment, str):
            attribute = _field_names(type(node)).get(segment)
            if attribute is None:
                return ""
            node = getattr(node, attribute)
        elif isinstance(node, tuple) and isinstance(segment, int):
            if segment < 0 or segment >= len(node):
                return ""
            node = node[segment]
        else:
            return ""
    return node if isinstance(node, str) else ""


def iter_leaf_paths(doc, prefix: Tuple[Segment, ...] = ()) -> Iterator[Tuple[Segment, ...]]:
    """Yield the path of every text leaf in ``doc``, using wire names."""
    if isinstance(doc, BaseModel):
        for attribute, field in type(doc).model_fields.items():
            yield from iter_leaf_paths(getattr(doc, attribute), prefix + (field.alias or attribute,))
    elif isinstance(doc, tuple):
        for index, item in enumerate(doc):
            yield from iter_leaf_paths(item, prefix + (index,))
    elif isinstance(doc, str):
        yield prefix
