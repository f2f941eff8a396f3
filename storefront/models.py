from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Iterable, Optional, Tuple

CENT = Decimal("0.01")


def money(value) -> Decimal:
    return Decimal(str(value)).quantize(CENT)


@dataclass(frozen=True, slots=True)
class Product:
    id: str
    name: str
    price: Decimal


@dataclass(slots=True)
class CartItem:
    product_id: str
    quantity: int
    product: Product

    @property
    def line_total(self) -> Decimal:
        return self.product.price * self.quantity

    def copy(self) -> CartItem:
        return CartItem(product_id=self.product_id, quantity=self.quantity, product=self.product)


def cart_total(items: Iterable[CartItem]) -> Decimal:
    """Sum of quantity x price. Cart views and checkout both go through here."""
    return money(sum((item.line_total for item in items), Decimal("0")))


@dataclass(frozen=True, slots=True)
class OrderItem:
    """Line of a committed order, copied from the cart at checkout."""

    product_id: str
    quantity: int
    product: Product

    @property
    def line_total(self) -> Decimal:
        return self.product.price * self.quantity

    @classmethod
    def from_cart_item(cls, item: CartItem) -> OrderItem:
        return cls(product_id=item.product_id, quantity=item.quantity, product=item.product)


@dataclass(frozen=True, slots=True)
class Order:
    id: str
    number: int
    user_id: str
    items: Tuple[OrderItem, ...]
    total_amount: Decimal
    discount_applied: Decimal
    discount_code: Optional[str]
    timestamp: datetime

    @property
    def items_count(self) -> int:
        return sum(item.quantity for item in self.items)


@dataclass(slots=True)
class DiscountCode:
    code: str
    percentage: Decimal
    is_used: bool
    generated_for_order_index: int


@dataclass(frozen=True, slots=True)
class UserData:
    id: str
    name: str
    created_at: datetime
    is_active: bool = True


@dataclass(frozen=True, slots=True)
class StoreStats:
    total_orders: int
    total_revenue: Decimal
    total_discounts_given: Decimal
    total_items_purchased: int
    discount_codes_generated: int


@dataclass(frozen=True, slots=True)
class UserStats:
    user_id: str
    orders_count: int
    total_spent: Decimal
    last_order_timestamp: Optional[datetime] = None
