"""Tests for recognition level thresholds."""

import pytest

from kudos_engine.models.enums import EmployeeLevel
from kudos_engine.services.level_service import (
    LEVEL_DEFINITIONS,
    can_access,
    get_definition,
    level_for_points,
    level_progress,
)


class TestLevelForPoints:
    @pytest.mark.parametrize(
        "points,expected",
        [
            (0, EmployeeLevel.RISING_STAR),
            (499, EmployeeLevel.RISING_STAR),
            (500, EmployeeLevel.ACHIEVER),
            (1500, EmployeeLevel.OUTSTANDING),
            (2999, EmployeeLevel.OUTSTANDING),
            (3000, EmployeeLevel.EXCELLENT_PERFORMER),
            (5000, EmployeeLevel.EMPLOYEE_OF_THE_YEAR),
            (10000, EmployeeLevel.HALL_OF_FAME),
            (250000, EmployeeLevel.HALL_OF_FAME),
        ],
    )
    def test_thresholds(self, points, expected):
        assert level_for_points(points).level == expected

    def test_definitions_are_ordered(self):
        orders = [d.order for d in LEVEL_DEFINITIONS]
        thresholds = [d.min_points for d in LEVEL_DEFINITIONS]
        assert orders == sorted(orders)
        assert thresholds == sorted(thresholds)


class TestProgress:
    def test_halfway(self):
        progress = level_progress(1000)
        assert progress.current.level == EmployeeLevel.ACHIEVER
        assert progress.next.level == EmployeeLevel.OUTSTANDING
        assert progress.points_to_next == 500
        assert progress.progress_percent == 50.0
        assert not progress.is_max_level

    def test_max_level(self):
        progress = level_progress(12000)
        assert progress.is_max_level
        assert progress.points_to_next == 0
        assert progress.progress_percent == 100.0


class TestAccess:
    def test_no_requirement(self):
        assert can_access(EmployeeLevel.RISING_STAR, None)

    def test_same_or_higher_level(self):
        assert can_access("OUTSTANDING", "OUTSTANDING")
        assert can_access(EmployeeLevel.HALL_OF_FAME, EmployeeLevel.ACHIEVER)

    def test_lower_level(self):
        assert not can_access(EmployeeLevel.ACHIEVER, "OUTSTANDING")

    def test_unknown_level(self):
        with pytest.raises(KeyError):
            get_definition("LEGEND")
