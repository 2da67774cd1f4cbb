from __future__ import annotations

from datetime import date, datetime

import pytest

from clinic_import.staging.values import (
    normalize_payment_method,
    normalize_sex,
    parse_bool,
    parse_date,
    parse_datetime,
    parse_number,
    parse_positive_int,
    parse_positive_number,
    split_list,
)


def test_parse_number_strips_currency_sign():
    assert parse_number("$1,5") is None
    assert parse_number("$800") == 800.0
    assert parse_number(" 12.5 ") == 12.5


@pytest.mark.parametrize("raw", [None, "", "  ", "abc", "inf", "-inf", "nan"])
def test_parse_number_rejects(raw):
    assert parse_number(raw) is None


def test_parse_positive_number_boundaries():
    assert parse_positive_number("-5") is None
    assert parse_positive_number("0") is None
    assert parse_positive_number("1") == 1.0


def test_parse_positive_int():
    assert parse_positive_int("3") == 3
    assert parse_positive_int("+2") == 2
    assert parse_positive_int("0") is None
    assert parse_positive_int("1.0") is None
    assert parse_positive_int(None) is None


def test_parse_datetime_formats():
    assert parse_datetime("2025-01-20 10:30") == datetime(2025, 1, 20, 10, 30)
    assert parse_date("2025-01-20") == date(2025, 1, 20)
    assert parse_datetime("no es fecha") is None
    assert parse_datetime("") is None
    assert parse_datetime("now") is None
    assert parse_date("Today") is None


def test_normalizers():
    assert normalize_sex("f") == "F"
    assert normalize_sex("otro") is None
    assert normalize_payment_method(" CLIP ") == "clip"
    assert normalize_payment_method("cheque") is None


def test_split_list_and_bool():
    assert split_list("axilas; piernas;;bikini ") == ["axilas", "piernas", "bikini"]
    assert split_list("") == []
    assert parse_bool("Sí") is True
    assert parse_bool("x") is True
    assert parse_bool("no") is False
    assert parse_bool(None) is False
