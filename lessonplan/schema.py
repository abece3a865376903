from typing import Tuple
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from lessonplan.settings import settings

# =============================================================================
# BASE MODEL - Frozen, camelCase on the wire
# =============================================================================

class PlanModel(BaseModel):
    """
    Base for every node of the plan.

    Nodes are frozen so a snapshot can be shared freely; edits produce new
    nodes via ``model_copy``. Unknown input keys are ignored, wire names are
    camelCase (``lessonNo``) and attribute names snake_case (``lesson_no``).
    """
    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        alias_generator=to_camel,
        populate_by_name=True,
    )


# =============================================================================
# SECTIONS
# =============================================================================

class BasicInfo(PlanModel):
    """Course information shown in the header grid."""
    level: str = Field(default="", description="Course level, e.g. '1' or 'PU1'")
    unit: str = Field(default="", description="Unit number, e.g. '7'")
    lesson_no: str = Field(default="", description="Lesson number within the unit")
    duration: str = Field(default="", description="Lesson length in minutes")
    class_name: str = Field(default="", description="Name of the class being taught")
    student_count: str = Field(default="", description="Number of students")
    date: str = Field(default="", description="Teaching date, YYYY-MM-DD")


class VocabObjectives(PlanModel):
    core: str = Field(default="", description="Core words the students must master")
    basic: str = Field(default="", description="Basic words")
    satellite: str = Field(default="", description="Satellite words")


class PatternObjectives(PlanModel):
    core: str = Field(default="", description="Core sentence patterns")
    basic: str = Field(default="", description="Basic sentence patterns")
    satellite: str = Field(default="", description="Satellite sentence patterns")


class ExpansionObjectives(PlanModel):
    culture: str = Field(default="", description="Cultural awareness goals")
    daily: str = Field(default="", description="Everyday usage goals")
    habits: str = Field(default="", description="Learning habit goals")


class Objectives(PlanModel):
    """Teaching objectives grouped into vocabulary, patterns and expansion."""
    vocab: VocabObjectives = Field(default_factory=VocabObjectives)
    patterns: PatternObjectives = Field(default_factory=PatternObjectives)
    expansion: ExpansionObjectives = Field(default_factory=ExpansionObjectives)


class Materials(PlanModel):
    cards: str = Field(default="", description="Word and picture cards")
    realia: str = Field(default="", description="Real objects brought to class")
    multimedia: str = Field(default="", description="Audio, video and slides")
    rewards: str = Field(default="", description="Stickers and other rewards")


class Game(PlanModel):
    """One classroom game."""
    name: str = Field(default="", description="Game name")
    goal: str = Field(default="", description="What the game practises")
    prep: str = Field(default="", description="Preparation needed")
    rules: str = Field(default="", description="How the game is played")


class ImplementationStep(PlanModel):
    """One row of the lesson procedure table."""
    step: str = Field(default="", description="Stage name, e.g. 'Warm-up'")
    duration: str = Field(default="", description="Minutes spent on the stage")
    design: str = Field(default="", description="Teaching design of the stage")
    instructions: str = Field(default="", description="Classroom language used by the teacher")
    notes: str = Field(default="", description="Difficulties and things to watch")
    blackboard: str = Field(default="", description="Blackboard writing")


class Connection(PlanModel):
    review: str = Field(default="", description="What is reviewed from earlier lessons")
    preview: str = Field(default="", description="What the next lesson previews")
    homework: str = Field(default="", description="Homework set")
    prep: str = Field(default="", description="Preparation for the next lesson")


class FeedbackEntry(PlanModel):
    content: str = Field(default="", description="What was communicated")
    time: str = Field(default="", description="When it was communicated")
    plan: str = Field(default="", description="Follow-up plan")


class Feedback(PlanModel):
    """Communication notes with students, parents and the teaching partner."""
    student: FeedbackEntry = Field(default_factory=FeedbackEntry)
    parent: FeedbackEntry = Field(default_factory=FeedbackEntry)
    partner: FeedbackEntry = Field(default_factory=FeedbackEntry)


# =============================================================================
# DOCUMENT
# =============================================================================

class TeachingPlan(PlanModel):
    """
    The canonical lesson plan document.

    ``games`` and ``steps`` are tuples that always hold at least one item;
    every other leaf is a string, empty when unset.
    """
    basic: BasicInfo = Field(default_factory=BasicInfo)
    objectives: Objectives = Field(default_factory=Objectives)
    materials: Materials = Field(default_factory=Materials)
    games: Tuple[Game, ...] = Field(min_length=1, description="Classroom games")
    steps: Tuple[ImplementationStep, ...] = Field(min_length=1, description="Lesson procedure")
    connection: Connection = Field(default_factory=Connection)
    feedback: Feedback = Field(default_factory=Feedback)

    def to_wire(self) -> dict:
        """Return the JSON-compatible camelCase representation."""
        return self.model_dump(mode="json", by_alias=True)


SECTION_NAMES = tuple(
    field.alias or name for name, field in TeachingPlan.model_fields.items()
)

DEFAULT_STEP_COUNT = settings.DEFAULT_STEP_COUNT


# =============================================================================
# DEFAULT FACTORY
# =============================================================================

def default_game_item() -> Game:
    return Game()


def default_step_item() -> ImplementationStep:
    return ImplementationStep()


def default_document(step_count: int = DEFAULT_STEP_COUNT) -> TeachingPlan:
    """
    Build an empty plan.

    Args:
        step_count: Number of empty implementation steps (at least 1)

    Returns:
        A plan where every text field is "" with one game and ``step_count`` steps
    """
    if step_count < 1:
        raise ValueError(f"step_count must be at least 1, got {step_count}")
    return TeachingPlan(
        games=(default_game_item(),),
        steps=tuple(default_step_item() for _ in range(step_count)),
    )


def default_section(name: str, step_count: int = DEFAULT_STEP_COUNT):
    """Return the default value of one top-level section, by wire or attribute name."""
    attribute = section_attribute(name)
    return getattr(default_document(step_count), attribute)


def section_attribute(name: str) -> str:
    """Map a section wire name (or attribute name) to its attribute name."""
    for attribute, field in TeachingPlan.model_fields.items():
        if name in (attribute, field.alias):
            return attribute
    raise KeyError(f"Unknown plan section: {name!r}")
