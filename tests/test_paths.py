import pytest

from lessonplan.errors import InvalidPathError
from lessonplan.paths import format_path, get_value, iter_leaf_paths, parse_path, set_value
from lessonplan.schema import default_document


def test_parse_path_splits_names_and_indices() -> None:
    assert parse_path("steps.2.design") == ("steps", 2, "design")
    assert parse_path(("games", 0, "name")) == ("games", 0, "name")
    assert format_path(("steps", 2, "design")) == "steps.2.design"
    assert parse_path("steps.².design") == ("steps", "²", "design")
    with pytest.raises(InvalidPathError):
        parse_path("")
    with pytest.raises(InvalidPathError):
        parse_path("basic..level")
    with pytest.raises(InvalidPathError):
        parse_path(())


def test_set_value_writes_leaf_and_leaves_input_untouched() -> None:
    doc = default_document()

    updated = set_value(doc, "basic.lessonNo", "3")

    assert get_value(updated, "basic.lessonNo") == "3"
    assert updated.basic.lesson_no == "3"
    assert get_value(doc, "basic.lessonNo") == ""


def test_set_value_accepts_attribute_names_and_sequences() -> None:
    doc = default_document()

    updated = set_value(doc, "basic.student_count", "12")
    updated = set_value(updated, ("steps", 1, "notes"), "Watch the pronunciation")

    assert get_value(updated, "basic.studentCount") == "12"
    assert get_value(updated, "steps.1.notes") == "Watch the pronunciation"


def test_set_value_copies_only_the_write_path() -> None:
    doc = default_document()

    updated = set_value(doc, "objectives.vocab.core", "cat")

    assert updated is not doc
    assert updated.objectives is not doc.objectives
    assert updated.objectives.vocab is not doc.objectives.vocab
    assert updated.objectives.patterns is doc.objectives.patterns
    assert updated.objectives.expansion is doc.objectives.expansion
    assert updated.basic is doc.basic
    assert updated.games is doc.games
    assert updated.steps is doc.steps
    assert updated.feedback is doc.feedback


def test_set_value_into_list_item_shares_other_items() -> None:
    doc = default_document()

    updated = set_value(doc, "steps.2.design", "Chant with actions")

    assert updated.steps is not doc.steps
    assert len(updated.steps) == len(doc.steps)
    assert updated.steps[2].design == "Chant with actions"
    for index in (0, 1, 3, 4):
        assert updated.steps[index] is doc.steps[index]
    assert updated.games is doc.games
    assert doc.steps[2].design == ""


@pytest.mark.parametrize(
    "path",
    [
        "basic.teacher",        # unknown field
        "basic",                # record, not a leaf
        "steps",                # list, not a leaf
        "steps.0",              # list item is a record
        "steps.9.design",       # index out of range
        "steps.-1.design",      # negative indices are not allowed
        "steps.design",         # list needs an index
        "basic.0",              # record has no items
        "basic.level.extra",    # cannot descend into text
        "curriculum.level",     # unknown section
        "steps.².design",       # superscript digit is not an index
    ],
)
def test_set_value_rejects_paths_that_do_not_name_a_leaf(path: str) -> None:
    with pytest.raises(InvalidPathError):
        set_value(default_document(), path, "x")


def test_invalid_path_error_is_a_lookup_error() -> None:
    with pytest.raises(LookupError) as excinfo:
        set_value(default_document(), "basic.teacher", "x")
    assert excinfo.value.path == "basic.teacher"
    assert "teacher" in str(excinfo.value)


def test_set_value_requires_text() -> None:
    with pytest.raises(TypeError):
        set_value(default_document(), "basic.level", 3)  # type: ignore[arg-type]
    with pytest.raises(TypeError):
        set_value(default_document(), "basic.level", None)  # type: ignore[arg-type]


@pytest.mark.parametrize(
    "path",
    ["basic.teacher", "steps.99.design", "steps.x.design", "basic", "steps", "", "games.0.name.more", ".", "steps.².design"],
)
def test_get_value_defaults_to_empty_string(path: str) -> None:
    doc = set_value(default_document(), "games.0.name", "Bingo")
    assert get_value(doc, path) == ""


def test_get_value_tolerates_non_plan_input() -> None:
    assert get_value(None, "basic.level") == ""
    assert get_value({"basic": {"level": "1"}}, "basic.level") == ""
    assert get_value(default_document(), None) == ""  # type: ignore[arg-type]


def test_iter_leaf_paths_covers_every_text_field() -> None:
    doc = default_document(2)
    paths = list(iter_leaf_paths(doc))

    # 7 basic + 9 objectives + 4 materials + 4 game + 12 steps + 4 connection + 9 feedback
    assert len(paths) == 49
    assert ("basic", "lessonNo") in paths
    assert ("steps", 1, "blackboard") in paths
    assert ("feedback", "partner", "plan") in paths


def test_set_only_changes_the_addressed_leaf(filled_plan) -> None:
    paths = list(iter_leaf_paths(filled_plan))

    for target in paths:
        updated = set_value(filled_plan, target, "changed")
        assert get_value(updated, target) == "changed"
        for other in paths:
            if other != target:
                assert get_value(updated, other) == get_value(filled_plan, other)


def test_set_is_idempotent(filled_plan) -> None:
    once = set_value(filled_plan, "steps.1.instructions", "Listen and repeat")
    twice = set_value(once, "steps.1.instructions", "Listen and repeat")

    assert twice == once
    assert set_value(filled_plan, "basic.level", "1") == filled_plan
