"""
Unit tests for recurrence rule validation.
"""

from datetime import date

import pytest
from pydantic import ValidationError

from gatherly.core.exceptions import InvalidRuleError
from gatherly.models.enums import OrdinalOccurrence
from gatherly.models.group import GroupCreate
from gatherly.models.recurrence import (
    BiweeklyRule,
    CustomRule,
    MonthlyRule,
    OrdinalRule,
    WeeklyRule,
    parse_rule,
)


class TestParseRule:
    def test_weekly_from_dict(self):
        rule = parse_rule({"frequency": "weekly", "day_times": [{"day": 3, "time": "06:00 PM"}]})
        assert isinstance(rule, WeeklyRule)
        assert rule.day_times[0].day == 3

    def test_typed_rule_passes_through(self):
        rule = OrdinalRule(occurrence=OrdinalOccurrence.LAST, day=5)
        assert parse_rule(rule) == rule

    def test_start_date_parsed(self):
        rule = parse_rule(
            {"frequency": "biweekly", "day_times": [{"day": 2}], "start_date": "2025-03-03"}
        )
        assert isinstance(rule, BiweeklyRule)
        assert rule.start_date == date(2025, 3, 3)

    @pytest.mark.parametrize(
        "raw",
        [
            {"frequency": "weekly"},
            {"frequency": "weekly", "day_times": []},
            {"frequency": "weekly", "day_times": [{"day": 7}]},
            {"frequency": "weekly", "day_times": [{"day": 1}, {"day": 1}]},
            {"frequency": "monthly", "day_times": [{"date": 0}]},
            {"frequency": "monthly", "day_times": [{"date": 32}]},
            {"frequency": "ordinal", "occurrence": "6th", "day": 1},
            {"frequency": "ordinal", "day": 1},
            {"frequency": "yearly"},
            {"day_times": [{"day": 1}]},
            {"frequency": "weekly", "day_times": [{"day": 1, "time": "25:00"}]},
            {"frequency": "daily", "timezone": "Not/AZone"},
            {"frequency": "custom", "routines": []},
        ],
    )
    def test_malformed_rules_rejected(self, raw):
        with pytest.raises(InvalidRuleError):
            parse_rule(raw)

    def test_error_carries_details(self):
        with pytest.raises(InvalidRuleError) as exc_info:
            parse_rule({"frequency": "monthly"})
        assert exc_info.value.details


class TestCustomRule:
    def test_routines_keep_their_variant(self):
        rule = parse_rule(
            {
                "frequency": "custom",
                "routines": [
                    {"frequency": "weekly", "day_times": [{"day": 1}]},
                    {"frequency": "monthly", "day_times": [{"date": 1}]},
                ],
            }
        )
        assert isinstance(rule, CustomRule)
        assert isinstance(rule.routines[0], WeeklyRule)
        assert isinstance(rule.routines[1], MonthlyRule)

    def test_at_most_five_routines(self):
        routine = {"frequency": "daily"}
        with pytest.raises(InvalidRuleError):
            parse_rule({"frequency": "custom", "routines": [routine] * 6})

    def test_no_nesting(self):
        nested = {"frequency": "custom", "routines": [{"frequency": "daily"}]}
        with pytest.raises(InvalidRuleError):
            parse_rule({"frequency": "custom", "routines": [nested]})


class TestGroupSchedule:
    def test_scheduled_group_requires_time_and_zone(self):
        with pytest.raises(ValidationError):
            GroupCreate(name="Runners", schedule={"frequency": "daily"}, time="06:00 AM")

    def test_unscheduled_group_needs_nothing(self):
        group = GroupCreate(name="  Runners  ")
        assert group.name == "Runners"
        assert group.schedule is None

    def test_blank_name_rejected(self):
        with pytest.raises(ValidationError):
            GroupCreate(name="   ")

    def test_unknown_timezone_rejected(self):
        with pytest.raises(ValidationError):
            GroupCreate(name="Runners", timezone="Atlantis/Capital")
