import math

import pytest

from domain.payment.exceptions import PaymentValidationError
from domain.payment.money import is_valid_amount, major_to_minor, minor_to_major


def test_minor_to_major_formats_two_decimals():
    assert minor_to_major(45000) == "450.00"
    assert minor_to_major(1) == "0.01"
    assert minor_to_major(0) == "0.00"
    assert minor_to_major(100) == "1.00"
    assert minor_to_major("12345") == "123.45"


def test_minor_to_major_rounds_half_up():
    assert minor_to_major(0.5) == "0.01"
    assert minor_to_major(0.4) == "0.00"
    assert minor_to_major(45000.0) == "450.00"


@pytest.mark.parametrize("bad", [-1, "abc", None, math.nan, math.inf])
def test_minor_to_major_rejects_invalid(bad):
    with pytest.raises(PaymentValidationError):
        minor_to_major(bad)


def test_major_to_minor_parses_and_rounds():
    assert major_to_minor("450.00") == 45000
    assert major_to_minor("0.01") == 1
    assert major_to_minor("0.005") == 1
    assert major_to_minor("0.004") == 0
    assert major_to_minor("1") == 100


@pytest.mark.parametrize("bad", ["abc", "", None, "-1.00", "NaN", "Infinity"])
def test_major_to_minor_clamps_garbage_to_zero(bad):
    assert major_to_minor(bad) == 0


def test_conversion_round_trip():
    for minor in range(0, 1_000_001):
        assert major_to_minor(minor_to_major(minor)) == minor


def test_is_valid_amount():
    assert is_valid_amount(100)
    assert is_valid_amount("1")
    assert is_valid_amount(0.5)
    assert not is_valid_amount(0)
    assert not is_valid_amount(-5)
    assert not is_valid_amount("x")
    assert not is_valid_amount(None)
    assert not is_valid_amount(True)
    assert not is_valid_amount(math.inf)


@pytest.mark.parametrize("huge", ["1e30", 1e30, "9" * 40])
def test_major_to_minor_clamps_out_of_range_to_zero(huge):
    assert major_to_minor(huge) == 0


@pytest.mark.parametrize("huge", ["1e30", 1e30, 10 ** 40])
def test_minor_to_major_rejects_out_of_range(huge):
    with pytest.raises(PaymentValidationError):
        minor_to_major(huge)
