"""
Reconciliation Engine

Turns the untrusted JSON returned by the extraction service into a valid
TeachingPlan. The walk is driven by the schema, not by the input: every field
of the plan is visited once, takes the input value only when it has the right
type, and otherwise keeps its default. Keys the schema does not define are
dropped. The function is total - any JSON value produces a plan.
"""

import logging
from typing import Any, Dict, Tuple, get_args, get_origin

from pydantic import BaseModel

from lessonplan.schema import DEFAULT_STEP_COUNT, TeachingPlan, default_document

logger = logging.getLogger(__name__)


def reconcile(
    raw: Any,
    *,
    min_games: int = 1,
    min_steps: int = 1,
    step_count: int = DEFAULT_STEP_COUNT,
) -> TeachingPlan:
    """
    Build a TeachingPlan from an extracted JSON value.

    Args:
        raw: Parsed JSON of any shape (object, array, string, null...)
        min_games: Imported game lists shorter than this are padded
        min_steps: Imported step lists shorter than this are padded
        step_count: Steps in the default list used when none were imported

    Returns:
        A complete plan; it replaces the current document wholesale
    """
    minimums = {"games": max(1, min_games), "steps": max(1, min_steps)}
    defaults = default_document(max(1, step_count))
    if not isinstance(raw, dict):
        logger.warning("Extraction returned %s instead of an object, using defaults", type(raw).__name__)
    return _reconcile_record(defaults, raw, minimums)


def _reconcile_record(default_node: BaseModel, raw: Any, minimums: Dict[str, int]) -> BaseModel:
    source = raw if isinstance(raw, dict) else {}
    values = {}

    for attribute, field in type(default_node).model_fields.items():
        default_value = getattr(default_node, attribute)
        value = _lookup(source, attribute, field.alias)

        if isinstance(default_value, str):
            values[attribute] = value if isinstance(value, str) else default_value
        elif isinstance(default_value, BaseModel):
            values[attribute] = _reconcile_record(default_value, value, minimums)
        elif isinstance(default_value, tuple):
            item_cls = _item_type(field.annotation)
            minimum = minimums.get(field.alias or attribute, 1)
            values[attribute] = _reconcile_items(item_cls, default_value, value, minimum, minimums)
        else:  # pragma: no cover - the schema only holds text, records and lists
            values[attribute] = default_value

    return type(default_node)(**values)


def _reconcile_items(
    item_cls,
    default_items: Tuple[BaseModel, ...],
    raw: Any,
    minimum: int,
    minimums: Dict[str, int],
) -> Tuple[BaseModel, ...]:
    if isinstance(raw, list):
        items = [
            _reconcile_record(item_cls(), entry, minimums) if isinstance(entry, dict) else item_cls()
            for entry in raw
        ]
    else:
        items = list(default_items)

    while len(items) < minimum:
        items.append(item_cls())
    return tuple(items)


def _lookup(source: Dict[str, Any], attribute: str, alias) -> Any:
    if alias and alias in source:
        return source[alias]
    return source.get(attribute)


def _item_type(annotation):
    """Return ``Game`` for ``Tuple[Game, ...]``."""
    if get_origin(annotation) is tuple:
        args = [arg for arg in get_args(annotation) if arg is not Ellipsis]
        if args:
            return args[0]
    raise TypeError(f"Unsupported list annotation: {annotation!r}")
