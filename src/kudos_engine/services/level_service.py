"""Recognition levels derived from lifetime points received."""

from __future__ import annotations

from dataclasses import dataclass

from kudos_engine.models.enums import EmployeeLevel


@dataclass(frozen=True)
class LevelDefinition:
    level: EmployeeLevel
    order: int
    name: str
    min_points: int


LEVEL_DEFINITIONS: tuple[LevelDefinition, ...] = (
    LevelDefinition(EmployeeLevel.RISING_STAR, 1, "Rising Star", 0),
    LevelDefinition(EmployeeLevel.ACHIEVER, 2, "Achiever", 500),
    LevelDefinition(EmployeeLevel.OUTSTANDING, 3, "Outstanding", 1500),
    LevelDefinition(EmployeeLevel.EXCELLENT_PERFORMER, 4, "Excellent Performer", 3000),
    LevelDefinition(EmployeeLevel.EMPLOYEE_OF_THE_YEAR, 5, "Employee of the Year", 5000),
    LevelDefinition(EmployeeLevel.HALL_OF_FAME, 6, "Hall of Fame", 10000),
)

_BY_LEVEL = {d.level.value: d for d in LEVEL_DEFINITIONS}


@dataclass(frozen=True)
class LevelProgress:
    current: LevelDefinition
    next: LevelDefinition | None
    points: int
    points_to_next: int
    progress_percent: float

    @property
    def is_max_level(self) -> bool:
        return self.next is None


def get_definition(level: EmployeeLevel | str) -> LevelDefinition:
    """Definition for a level; unknown values raise KeyError."""
    return _BY_LEVEL[getattr(level, "value", level)]


def level_for_points(points: int) -> LevelDefinition:
    """Highest level whose threshold the points reach."""
    current = LEVEL_DEFINITIONS[0]
    for definition in LEVEL_DEFINITIONS:
        if points >= definition.min_points:
            current = definition
    return current


def level_progress(points: int) -> LevelProgress:
    current = level_for_points(points)
    index = LEVEL_DEFINITIONS.index(current)
    nxt = LEVEL_DEFINITIONS[index + 1] if index + 1 < len(LEVEL_DEFINITIONS) else None

    if nxt is None:
        return LevelProgress(current, None, points, 0, 100.0)

    span = nxt.min_points - current.min_points
    percent = min(100.0, max(0.0, (points - current.min_points) / span * 100))
    return LevelProgress(current, nxt, points, nxt.min_points - points, round(percent, 2))


def can_access(level: EmployeeLevel | str, required: EmployeeLevel | str | None) -> bool:
    """Whether an employee at `level` may redeem a reward gated at `required`."""
    if not required:
        return True
    return get_definition(level).order >= get_definition(required).order
