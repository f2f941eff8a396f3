"""Tests for milestone discount issuance."""
from decimal import Decimal

import pytest

from conftest import buy
from storefront.api import Storefront
from storefront.codes import random_code_generator, sequence_code_generator
from storefront.config import StorefrontConfig
from storefront.errors import CodeSpaceExhausted, DuplicateCodeGeneration, InvalidInput
from storefront.store import DiscountRegistry


def test_no_code_before_first_order(shop):
    assert shop.issue_discount_code() is None
    assert shop.discount_codes() == []


@pytest.mark.parametrize("orders", [1, 2, 4, 5])
def test_no_code_off_milestone(shop, orders):
    for _ in range(orders):
        buy(shop)

    assert shop.issue_discount_code() is None
    assert shop.discount_codes() == []


def test_code_issued_at_milestone(shop, store):
    for _ in range(3):
        buy(shop)

    code = shop.issue_discount_code()

    assert code.code == "WINNER-0001"
    assert code.percentage == Decimal("10")
    assert code.is_used is False
    assert code.generated_for_order_index == 3
    assert store.discounts.lookup("WINNER-0001") == code
    assert any("discount issued: WINNER-0001" in l for l in store.logs)


def test_second_issue_at_same_count_fails(shop):
    for _ in range(3):
        buy(shop)
    shop.issue_discount_code()

    with pytest.raises(DuplicateCodeGeneration) as exc_info:
        shop.issue_discount_code()

    assert exc_info.value.order_index == 3
    assert len(shop.discount_codes()) == 1


def test_discounted_orders_count_toward_next_milestone(shop):
    for _ in range(3):
        buy(shop)
    first = shop.issue_discount_code()
    buy(shop, code=first.code)
    buy(shop)
    buy(shop)

    second = shop.issue_discount_code()

    assert second.generated_for_order_index == 6
    assert second.code == "WINNER-0002"
    assert shop.store_stats().discount_codes_generated == 2


def test_configured_interval_and_percent(codes, clock):
    shop = Storefront.create(
        config=StorefrontConfig(milestone_interval=2, discount_percent=Decimal("25")),
        code_generator=codes,
        clock=clock,
    )
    buy(shop)
    assert shop.issue_discount_code() is None
    buy(shop)

    code = shop.issue_discount_code()
    order = buy(shop, "User_B", "p3", 1, code=code.code)

    assert code.percentage == Decimal("25")
    assert order.discount_applied == Decimal("75.00")
    assert order.total_amount == Decimal("225.00")


def test_generator_collisions_are_retried():
    registry = DiscountRegistry()
    generate = sequence_code_generator(["WINNER-0007", "WINNER-0007", "WINNER-0008"])

    first = registry.issue_if_due(3, 3, Decimal("10"), generate)
    second = registry.issue_if_due(6, 3, Decimal("10"), generate)

    assert first.code == "WINNER-0007"
    assert second.code == "WINNER-0008"


def test_exhausted_code_space():
    registry = DiscountRegistry()
    registry.issue_if_due(1, 1, Decimal("10"), lambda: "WINNER-0001")

    with pytest.raises(CodeSpaceExhausted):
        registry.issue_if_due(2, 1, Decimal("10"), lambda: "WINNER-0001")
    assert registry.count() == 1


def test_random_codes_have_expected_shape():
    generate = random_code_generator(seed=42)
    code = generate()

    assert code.startswith("WINNER-")
    assert len(code) == len("WINNER-0000")
    assert random_code_generator(seed=42)() == code


@pytest.mark.parametrize(
    "kwargs",
    [
        {"milestone_interval": 0},
        {"milestone_interval": -1},
        {"milestone_interval": 2.5},
        {"discount_percent": 0},
        {"discount_percent": 101},
        {"discount_percent": "lots"},
        {"discount_percent": "NaN"},
    ],
)
def test_invalid_config(kwargs):
    with pytest.raises(InvalidInput):
        StorefrontConfig(**kwargs)


def test_default_config():
    config = StorefrontConfig()

    assert config.milestone_interval == 3
    assert config.discount_percent == Decimal("10")
