"""Concurrent callers against one storefront."""
from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal

from conftest import buy, fill_cart
from storefront.errors import CodeAlreadyUsed, DuplicateCodeGeneration

WORKERS = 8


def test_concurrent_checkouts_get_gapless_ids(shop):
    users = [shop.add_user(f"Shopper {i}") for i in range(40)]
    for user_id in users:
        fill_cart(shop, user_id, "p2", 1)

    with ThreadPoolExecutor(max_workers=WORKERS) as pool:
        orders = list(pool.map(shop.checkout, users))

    ids = sorted(o.number for o in orders)
    assert ids == list(range(1, len(users) + 1))
    assert [o.id for o in shop.all_orders()] == [f"ORD-{n}" for n in ids]
    assert all(shop.get_cart(u) == [] for u in users)


def test_concurrent_redemptions_of_one_code(shop):
    for _ in range(3):
        buy(shop)
    code = shop.issue_discount_code().code
    users = [shop.add_user(f"Shopper {i}") for i in range(16)]
    for user_id in users:
        fill_cart(shop, user_id)

    def attempt(user_id):
        try:
            return shop.checkout(user_id, code)
        except CodeAlreadyUsed as e:
            return e

    with ThreadPoolExecutor(max_workers=WORKERS) as pool:
        results = list(pool.map(attempt, users))

    winners = [r for r in results if not isinstance(r, CodeAlreadyUsed)]
    assert len(winners) == 1
    assert winners[0].discount_applied == Decimal("10.00")
    assert shop.store_stats().total_orders == 4
    assert shop.store_stats().total_discounts_given == Decimal("10.00")


def test_concurrent_issuance_mints_one_code(shop):
    for _ in range(3):
        buy(shop)

    def attempt(_):
        try:
            return shop.issue_discount_code()
        except DuplicateCodeGeneration as e:
            return e

    with ThreadPoolExecutor(max_workers=WORKERS) as pool:
        results = list(pool.map(attempt, range(16)))

    minted = [r for r in results if not isinstance(r, DuplicateCodeGeneration)]
    assert len(minted) == 1
    assert len(shop.discount_codes()) == 1


def test_concurrent_adds_to_one_cart_are_not_lost(shop):
    with ThreadPoolExecutor(max_workers=WORKERS) as pool:
        list(pool.map(lambda _: shop.add_to_cart("User_A", "p1"), range(200)))

    cart = shop.get_cart("User_A")
    assert len(cart) == 1
    assert cart[0].quantity == 200
