from __future__ import annotations

import argparse
import logging
from decimal import Decimal, InvalidOperation

from storefront.api import Storefront
from storefront.codes import random_code_generator
from storefront.config import StorefrontConfig
from storefront.errors import InvalidInput, StorefrontError


def percent(value: str) -> Decimal:
    try:
        return Decimal(value)
    except InvalidOperation:
        raise argparse.ArgumentTypeError(f"not a number: {value!r}") from None


def main(argv=None) -> None:
    logging.basicConfig(level=logging.INFO, format="%(message)s")

    p = argparse.ArgumentParser(description="Run a few checkouts through the storefront and print the stats.")
    p.add_argument("--interval", type=int, default=3, help="Discount code is due every N orders")
    p.add_argument("--percent", type=percent, default=Decimal("10"), help="Discount percentage of issued codes")
    p.add_argument("--orders", type=int, default=5)
    p.add_argument("--user-id", type=str, default="User_A")
    p.add_argument("--product", type=str, default="p2")
    p.add_argument("--qty", type=int, default=2)
    p.add_argument("--seed", type=int, default=None, help="Seed for discount code generation")
    args = p.parse_args(argv)

    try:
        config = StorefrontConfig(milestone_interval=args.interval, discount_percent=args.percent)
    except InvalidInput as e:
        p.error(str(e))

    shop = Storefront.create(
        config=config,
        code_generator=random_code_generator(args.seed),
    )

    code = None
    for _ in range(args.orders):
        try:
            shop.add_to_cart(args.user_id, args.product)
            shop.set_cart_quantity(args.user_id, args.product, args.qty)
            order = shop.checkout(args.user_id, code)
        except StorefrontError as e:
            print("checkout failed:", e)
            break
        code = None
        print(f"{order.id}: total={order.total_amount} discount={order.discount_applied} code={order.discount_code}")

        issued = shop.issue_discount_code()
        if issued:
            code = issued.code

    print("\n=== RESULT ===")
    print("store:", shop.store_stats())
    print("user:", shop.user_stats(args.user_id))
    print("codes:", shop.discount_codes())


if __name__ == "__main__":
    main()
