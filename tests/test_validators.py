"""Unit tests for input validation and sanitization."""

import pytest

from taskboard.core.errors import ValidationAppError
from taskboard.utils.validators import (
    DEFAULT_PRIORITY,
    MAX_TEXT_LENGTH,
    ONE_YEAR_MS,
    sanitize_string,
    validate_boolean,
    validate_group_id,
    validate_group_name,
    validate_priority,
    validate_task_text,
    validate_timestamp,
    validate_uuid,
)

NOW = 1_700_000_000_000


class TestSanitizeString:
    def test_strips_control_characters_and_whitespace(self) -> None:
        assert sanitize_string("  hel\x00lo\x1f  ", field="text") == "hello"

    def test_keeps_tabs_and_newlines_inside(self) -> None:
        assert sanitize_string("a\tb\nc", field="text") == "a\tb\nc"

    def test_rejects_non_string(self) -> None:
        with pytest.raises(ValidationAppError) as exc_info:
            sanitize_string(42, field="text")

        assert exc_info.value.field == "text"
        assert exc_info.value.code == "invalid_text"

    @pytest.mark.parametrize("raw", ["", "   ", "\x00\x01"])
    def test_rejects_empty_after_sanitizing(self, raw: str) -> None:
        with pytest.raises(ValidationAppError) as exc_info:
            sanitize_string(raw, field="name")

        assert exc_info.value.reason == "cannot be empty"

    def test_rejects_over_length(self) -> None:
        with pytest.raises(ValidationAppError):
            validate_task_text("x" * (MAX_TEXT_LENGTH + 1))

    def test_accepts_exact_max_length(self) -> None:
        assert len(validate_task_text("x" * MAX_TEXT_LENGTH)) == MAX_TEXT_LENGTH

    def test_group_name_limit_is_100(self) -> None:
        assert validate_group_name("n" * 100) == "n" * 100
        with pytest.raises(ValidationAppError):
            validate_group_name("n" * 101)


class TestIdentifiers:
    def test_uuid_accepts_canonical_form_any_case(self) -> None:
        raw = "3F2504E0-4F89-11D3-9A0C-0305E82C3301"
        assert validate_uuid(raw) == raw

    @pytest.mark.parametrize("raw", ["not-a-uuid", "3f2504e04f8911d39a0c0305e82c3301", None, 7])
    def test_uuid_rejects_other_shapes(self, raw) -> None:
        with pytest.raises(ValidationAppError) as exc_info:
            validate_uuid(raw, field="todoId")

        assert exc_info.value.field == "todoId"

    def test_group_id_accepts_default_and_uuid(self) -> None:
        assert validate_group_id("default") == "default"
        assert validate_group_id(" work_list-1 ") == "work_list-1"

    @pytest.mark.parametrize("raw", ["", "has space", "../etc", "a" * 101, 3])
    def test_group_id_rejects_invalid(self, raw) -> None:
        with pytest.raises(ValidationAppError):
            validate_group_id(raw)


class TestPriority:
    @pytest.mark.parametrize("raw", [None, ""])
    def test_defaults_to_middle_level(self, raw) -> None:
        assert validate_priority(raw) == DEFAULT_PRIORITY == "P1"

    @pytest.mark.parametrize("raw", ["P0", "P1", "P2"])
    def test_accepts_known_levels(self, raw: str) -> None:
        assert validate_priority(raw) == raw

    @pytest.mark.parametrize("raw", ["P3", "p0", 0])
    def test_rejects_unknown_levels(self, raw) -> None:
        with pytest.raises(ValidationAppError):
            validate_priority(raw)


class TestTimestamp:
    def test_missing_defaults_to_now(self) -> None:
        assert validate_timestamp(None, now=NOW) == NOW

    def test_accepts_numbers_and_numeric_strings(self) -> None:
        assert validate_timestamp(NOW - 5, now=NOW) == NOW - 5
        assert validate_timestamp(str(NOW), now=NOW) == NOW
        assert validate_timestamp(1234.9, now=NOW) == 1234

    def test_accepts_up_to_one_year_ahead(self) -> None:
        assert validate_timestamp(NOW + ONE_YEAR_MS, now=NOW) == NOW + ONE_YEAR_MS

    @pytest.mark.parametrize(
        "raw",
        [-1, NOW + ONE_YEAR_MS + 1, "yesterday", "12abc", True, float("nan"), float("inf"), [1]],
    )
    def test_rejects_invalid(self, raw) -> None:
        with pytest.raises(ValidationAppError) as exc_info:
            validate_timestamp(raw, field="createdAt", now=NOW)

        assert exc_info.value.field == "createdAt"


class TestBoolean:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [(True, True), (False, False), ("true", True), ("FALSE", False), (" True ", True)],
    )
    def test_parses_booleans(self, raw, expected: bool) -> None:
        assert validate_boolean(raw) is expected

    @pytest.mark.parametrize("raw", ["yes", 1, None, "1"])
    def test_falls_back_to_default(self, raw) -> None:
        assert validate_boolean(raw) is False
        assert validate_boolean(raw, default=True) is True
