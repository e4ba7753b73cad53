import pytest

from payview.exceptions import ValidationError
from payview.services.fees import calculate_platform_fee, calculate_seller_earnings, format_cents


@pytest.mark.parametrize(
    "amount, expected",
    [
        (1000, 50),
        (999, 50),  # 49.95 rounds up
        (10, 1),  # 0.5 rounds half up
        (9, 0),
        (1, 0),
        (0, 0),
        (2599, 130),
    ],
)
def test_platform_fee_at_default_percentage(amount, expected):
    assert calculate_platform_fee(amount) == expected


def test_platform_fee_with_explicit_percentage():
    assert calculate_platform_fee(1000, 12.5) == 125
    assert calculate_platform_fee(1000, 0) == 0
    assert calculate_platform_fee(1000, 100) == 1000


def test_fee_and_earnings_always_sum_to_amount():
    for amount in range(0, 5000, 7):
        fee = calculate_platform_fee(amount)
        assert 0 <= fee <= amount
        assert fee + calculate_seller_earnings(amount) == amount


def test_negative_amount_is_rejected():
    with pytest.raises(ValidationError):
        calculate_platform_fee(-1)


@pytest.mark.parametrize("pct", [-1, 100.5, 150])
def test_percentage_out_of_range_is_rejected(pct):
    with pytest.raises(ValidationError):
        calculate_platform_fee(1000, pct)


def test_format_cents():
    assert format_cents(1050) == "$10.50"
    assert format_cents(5) == "$0.05"
    assert format_cents(500, "eur") == "EUR 5.00"
