"""Pytest fixtures for the storefront engine."""

import itertools
from datetime import datetime, timedelta, timezone

import pytest

from storefront.api import Storefront
from storefront.codes import sequence_code_generator
from storefront.config import StorefrontConfig

START = datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def clock():
    ticks = itertools.count()
    return lambda: START + timedelta(seconds=next(ticks))


@pytest.fixture
def codes():
    return sequence_code_generator(map("WINNER-{:04d}".format, itertools.count(1)))


@pytest.fixture
def config() -> StorefrontConfig:
    return StorefrontConfig(milestone_interval=3, discount_percent=10)


@pytest.fixture
def shop(config, codes, clock) -> Storefront:
    # Seeded with p1..p6 (p2 is the 50.00 mouse) and User_A..User_D.
    return Storefront.create(config=config, code_generator=codes, clock=clock)


@pytest.fixture
def store(shop):
    return shop.store


def fill_cart(shop: Storefront, user_id: str, product_id: str = "p2", qty: int = 2) -> None:
    shop.add_to_cart(user_id, product_id)
    shop.set_cart_quantity(user_id, product_id, qty)


def buy(shop: Storefront, user_id: str = "User_A", product_id: str = "p2", qty: int = 2, code=None):
    fill_cart(shop, user_id, product_id, qty)
    return shop.checkout(user_id, code)
