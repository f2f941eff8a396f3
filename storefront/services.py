from __future__ import annotations

from decimal import Decimal
from typing import List, Optional

from storefront.codes import CodeGenerator, random_code_generator
from storefront.config import StorefrontConfig
from storefront.models import DiscountCode, Order, StoreStats, UserStats, money
from storefront.saga import CheckoutSaga
from storefront.store import Store


class DiscountsService:
    def __init__(self, store: Store, config: StorefrontConfig, generate: CodeGenerator):
        self.store = store
        self.config = config
        self.generate = generate

    def issue_if_due(self) -> Optional[DiscountCode]:
        order_count = self.store.orders.count()
        issued = self.store.discounts.issue_if_due(
            order_count,
            self.config.milestone_interval,
            self.config.discount_percent,
            self.generate,
        )
        if issued is None:
            self.store.log(f"[orders={order_count}] no discount due (every {self.config.milestone_interval} orders)")
            return None
        self.store.log(f"[orders={order_count}] discount issued: {issued.code} ({issued.percentage}%)")
        return issued


class TransactionService:
    """Checkout and discount issuance over the shared stores."""

    def __init__(
        self,
        store: Store,
        config: Optional[StorefrontConfig] = None,
        generate: Optional[CodeGenerator] = None,
    ):
        self.store = store
        self.config = config or StorefrontConfig()
        self.discounts = DiscountsService(store, self.config, generate or random_code_generator())

    def checkout(self, user_id: str, code: Optional[str] = None, fail_at_step: Optional[str] = None) -> Order:
        return CheckoutSaga(self.store).execute(user_id, code, fail_at_step=fail_at_step)

    def issue_discount_code(self) -> Optional[DiscountCode]:
        return self.discounts.issue_if_due()


class StatsAggregator:
    def __init__(self, store: Store):
        self.store = store

    def store_stats(self) -> StoreStats:
        orders = self.store.orders.list()
        return StoreStats(
            total_orders=len(orders),
            total_revenue=money(sum((o.total_amount for o in orders), Decimal("0"))),
            total_discounts_given=money(sum((o.discount_applied for o in orders), Decimal("0"))),
            total_items_purchased=sum(o.items_count for o in orders),
            discount_codes_generated=self.store.discounts.count(),
        )

    def user_orders(self, user_id: str) -> List[Order]:
        return [o for o in self.store.orders.list() if o.user_id == user_id]

    def user_stats(self, user_id: str) -> UserStats:
        orders = self.user_orders(user_id)
        return UserStats(
            user_id=user_id,
            orders_count=len(orders),
            total_spent=money(sum((o.total_amount for o in orders), Decimal("0"))),
            # Ledger order is append order, which is already chronological.
            last_order_timestamp=orders[-1].timestamp if orders else None,
        )

    def all_orders(self) -> List[Order]:
        return self.store.orders.list()

    def discount_codes(self) -> List[DiscountCode]:
        return self.store.discounts.list()
