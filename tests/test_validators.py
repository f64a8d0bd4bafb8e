"""Unit tests for input validation helpers."""

import pytest

from core.constants import TaskName
from core.exceptions import ValidationError
from utils.validators import (
    normalize_phone,
    parse_bool,
    require_email,
    require_full_name,
    require_phone,
    require_task_name,
    require_title,
    require_winner_count,
    validate_hex_color,
    validate_phone,
)


def test_normalize_phone_strips_separators():
    assert normalize_phone("052-123-4567") == "0521234567"
    assert normalize_phone("+972 (52) 123 4567") == "972521234567"
    assert normalize_phone("") == ""


@pytest.mark.parametrize("value", ["052123456", "0521234567", "123456789012345"])
def test_validate_phone_accepts_9_to_15_digits(value):
    assert validate_phone(value)


@pytest.mark.parametrize("value", ["12345678", "1234567890123456", "abc", ""])
def test_validate_phone_rejects_out_of_range(value):
    assert not validate_phone(value)


def test_require_phone_returns_normalized():
    assert require_phone("050 123 4567") == "0501234567"
    with pytest.raises(ValidationError):
        require_phone("12")


def test_require_full_name():
    assert require_full_name("  Dana Levi ") == "Dana Levi"
    with pytest.raises(ValidationError):
        require_full_name("   ")
    with pytest.raises(ValidationError):
        require_full_name("x" * 101)


def test_require_email_is_optional():
    assert require_email(None) is None
    assert require_email("  ") is None
    assert require_email(" dana@example.com ") == "dana@example.com"
    with pytest.raises(ValidationError):
        require_email("not-an-email")


@pytest.mark.parametrize("value", [0, -3, "abc", None])
def test_require_winner_count_rejects_invalid(value):
    with pytest.raises(ValidationError):
        require_winner_count(value)


def test_require_winner_count_accepts_numeric_strings():
    assert require_winner_count("3") == 3


def test_require_task_name():
    assert require_task_name("saved_contact") is TaskName.SAVED_CONTACT
    assert require_task_name(TaskName.SHARED_WHATSAPP) is TaskName.SHARED_WHATSAPP
    with pytest.raises(ValidationError):
        require_task_name("liked_page")


def test_require_title_limits():
    assert require_title(" Prize ") == "Prize"
    with pytest.raises(ValidationError):
        require_title("")
    with pytest.raises(ValidationError):
        require_title("t" * 201)


def test_validate_hex_color():
    assert validate_hex_color("#6366f1")
    assert not validate_hex_color("6366f1")
    assert not validate_hex_color("#fff")


@pytest.mark.parametrize("value", [True, "true", "TRUE", "1", "yes", "on", 1])
def test_parse_bool_true_values(value):
    assert parse_bool(value) is True


@pytest.mark.parametrize("value", [False, None, "false", "0", "no", "off", "", 0])
def test_parse_bool_false_values(value):
    assert parse_bool(value) is False
