from __future__ import annotations

from decimal import Decimal
from typing import List, Optional

from storefront.codes import CodeGenerator
from storefront.config import StorefrontConfig
from storefront.models import CartItem, DiscountCode, Order, Product, StoreStats, UserData, UserStats
from storefront.services import StatsAggregator, TransactionService
from storefront.store import Clock, Store, seed, utcnow


class Storefront:
    """
    Call interface used by the presentation layer.

    Adding to a cart requires a known, active user; everything
    else is forwarded to the stores and services as is.
    """

    def __init__(self, store: Store, transactions: TransactionService, stats: StatsAggregator):
        self.store = store
        self.transactions = transactions
        self.stats = stats

    @classmethod
    def create(
        cls,
        config: Optional[StorefrontConfig] = None,
        seed_defaults: bool = True,
        code_generator: Optional[CodeGenerator] = None,
        clock: Clock = utcnow,
    ) -> Storefront:
        store = Store(clock=clock)
        if seed_defaults:
            seed(store)
        return cls(
            store=store,
            transactions=TransactionService(store, config, code_generator),
            stats=StatsAggregator(store),
        )

    @property
    def config(self) -> StorefrontConfig:
        return self.transactions.config

    # Catalog
    def list_products(self) -> List[Product]:
        return self.store.catalog.list()

    def add_product(self, name: str, price) -> Product:
        return self.store.catalog.add(name, price)

    def remove_product(self, product_id: str) -> None:
        self.store.catalog.remove(product_id)

    # Cart
    def get_cart(self, user_id: str) -> List[CartItem]:
        return self.store.carts.get(user_id)

    def cart_total(self, user_id: str) -> Decimal:
        return self.store.carts.total(user_id)

    def add_to_cart(self, user_id: str, product_id: str) -> List[CartItem]:
        self.store.users.require_active(user_id)
        return self.store.carts.add_item(user_id, product_id)

    def remove_from_cart(self, user_id: str, product_id: str) -> None:
        self.store.carts.remove_item(user_id, product_id)

    def set_cart_quantity(self, user_id: str, product_id: str, qty: int) -> None:
        self.store.carts.set_quantity(user_id, product_id, qty)

    def clear_cart(self, user_id: str) -> None:
        self.store.carts.clear(user_id)

    # Transactions
    def checkout(self, user_id: str, code: Optional[str] = None) -> Order:
        return self.transactions.checkout(user_id, code)

    def issue_discount_code(self) -> Optional[DiscountCode]:
        return self.transactions.issue_discount_code()

    # Stats
    def store_stats(self) -> StoreStats:
        return self.stats.store_stats()

    def user_stats(self, user_id: str) -> UserStats:
        return self.stats.user_stats(user_id)

    def user_orders(self, user_id: str) -> List[Order]:
        return self.stats.user_orders(user_id)

    def all_orders(self) -> List[Order]:
        return self.stats.all_orders()

    def discount_codes(self) -> List[DiscountCode]:
        return self.stats.discount_codes()

    # Users
    def add_user(self, name: str) -> str:
        return self.store.users.add(name)

    def deactivate_user(self, user_id: str) -> None:
        self.store.users.deactivate(user_id)

    def list_active_users(self) -> List[UserData]:
        return self.store.users.list_active()

    def list_all_users(self) -> List[UserData]:
        return self.store.users.list_all()
