"""
Collection Editor

Append/remove helpers for the two variable-length sections of the plan.
Neither section may ever become empty: removing the last remaining item is
silently ignored, as is removing an index that does not exist.
"""

from typing import Callable, Tuple, TypeVar

from lessonplan.schema import TeachingPlan, default_game_item, default_step_item

T = TypeVar("T")


def append_item(items: Tuple[T, ...], factory: Callable[[], T]) -> Tuple[T, ...]:
    """Return ``items`` with one freshly built item appended."""
    return tuple(items) + (factory(),)


def remove_item(items: Tuple[T, ...], index: int) -> Tuple[T, ...]:
    """Return ``items`` without ``items[index]``; unchanged if that would empty it."""
    if len(items) <= 1:
        return items
    if index < 0 or index >= len(items):
        return items
    return tuple(items[:index]) + tuple(items[index + 1:])


# --- Document helpers ---

def add_game(doc: TeachingPlan) -> TeachingPlan:
    return doc.model_copy(update={"games": append_item(doc.games, default_game_item)})


def remove_game(doc: TeachingPlan, index: int) -> TeachingPlan:
    games = remove_item(doc.games, index)
    if games is doc.games:
        return doc
    return doc.model_copy(update={"games": games})


def add_step(doc: TeachingPlan) -> TeachingPlan:
    return doc.model_copy(update={"steps": append_item(doc.steps, default_step_item)})


def remove_step(doc: TeachingPlan, index: int) -> TeachingPlan:
    steps = remove_item(doc.steps, index)
    if steps is doc.steps:
        return doc
    return doc.model_copy(update={"steps": steps})
