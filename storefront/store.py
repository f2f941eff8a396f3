from __future__ import annotations

import logging
import threading
import uuid
from contextlib import contextmanager
from dataclasses import replace
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Callable, Dict, Iterator, List, Optional

from storefront.errors import (
    CannotRemoveLastActiveUser,
    CodeAlreadyUsed,
    CodeNotFound,
    CodeSpaceExhausted,
    DuplicateCodeGeneration,
    InvalidInput,
    ProductNotFound,
    UserNotFound,
)
from storefront.models import CENT, CartItem, DiscountCode, Order, Product, UserData, cart_total

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

# Bounded so a saturated code space surfaces as an error instead of a spin.
MAX_CODE_ATTEMPTS = 64


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _clean_name(name: str, what: str) -> str:
    cleaned = (name or "").strip()
    if not cleaned:
        raise InvalidInput(f"{what} name must not be empty")
    return cleaned


class Catalog:
    def __init__(self) -> None:
        self._products: Dict[str, Product] = {}
        self._lock = threading.Lock()
        self._remove_listeners: List[Callable[[str], None]] = []

    def on_remove(self, listener: Callable[[str], None]) -> None:
        self._remove_listeners.append(listener)

    def list(self) -> List[Product]:
        with self._lock:
            return list(self._products.values())

    def get(self, product_id: str) -> Optional[Product]:
        with self._lock:
            return self._products.get(product_id)

    def add(self, name: str, price, product_id: Optional[str] = None) -> Product:
        name = _clean_name(name, "Product")
        if isinstance(price, bool):
            raise InvalidInput(f"Price must be a number, got {price!r}")
        try:
            amount = Decimal(str(price))
        except (InvalidOperation, ValueError, TypeError):
            raise InvalidInput(f"Price must be a number, got {price!r}") from None
        if not amount.is_finite() or amount <= 0:
            raise InvalidInput(f"Price must be > 0, got {price!r}")
        if amount != amount.quantize(CENT):
            raise InvalidInput(f"Price must be in whole cents, got {price!r}")
        price = amount.quantize(CENT)

        with self._lock:
            if product_id is None:
                product_id = f"p-{uuid.uuid4().hex[:8]}"
                while product_id in self._products:
                    product_id = f"p-{uuid.uuid4().hex[:8]}"
            elif product_id in self._products:
                raise InvalidInput(f"Product {product_id} already exists")
            product = Product(id=product_id, name=name, price=price)
            self._products[product_id] = product
        logger.debug("product added: %s %s (%s)", product.id, product.name, product.price)
        return product

    def remove(self, product_id: str) -> None:
        with self._lock:
            removed = self._products.pop(product_id, None)
        if removed is None:
            return
        logger.debug("product removed: %s", product_id)
        # Carts are cleaned after the catalog lock is released.
        for listener in self._remove_listeners:
            listener(product_id)


class CartStore:
    """
    Carts partitioned by user id.

    Every user's cart has its own re-entrant lock, so checkout can hold the
    cart for the whole transaction while still calling get/clear. Locks are
    created by add_item only; a user without a lock has no cart.
    """

    def __init__(self, catalog: Catalog) -> None:
        self.catalog = catalog
        self._carts: Dict[str, List[CartItem]] = {}
        self._locks: Dict[str, threading.RLock] = {}
        self._locks_guard = threading.Lock()
        catalog.on_remove(self.purge_product)

    def _lock_for(self, user_id: str, create: bool = False) -> Optional[threading.RLock]:
        with self._locks_guard:
            lock = self._locks.get(user_id)
            if lock is None and create:
                lock = self._locks[user_id] = threading.RLock()
            return lock

    @contextmanager
    def locked(self, user_id: str) -> Iterator[bool]:
        """Hold the user's cart. Yields False when the user never had one."""
        lock = self._lock_for(user_id)
        if lock is None:
            yield False
            return
        with lock:
            yield True

    def get(self, user_id: str) -> List[CartItem]:
        lock = self._lock_for(user_id)
        if lock is None:
            return []
        with lock:
            return [item.copy() for item in self._carts.get(user_id, [])]

    def total(self, user_id: str) -> Decimal:
        return cart_total(self.get(user_id))

    def add_item(self, user_id: str, product_id: str) -> List[CartItem]:
        # Resolved under the cart lock so a concurrent Catalog.remove purges
        # whatever this call appends.
        with self._lock_for(user_id, create=True):
            product = self.catalog.get(product_id)
            if product is None:
                raise ProductNotFound(product_id)
            cart = self._carts.setdefault(user_id, [])
            existing = next((i for i in cart if i.product_id == product_id), None)
            if existing:
                existing.quantity += 1
            else:
                cart.append(CartItem(product_id=product_id, quantity=1, product=product))
            return [item.copy() for item in cart]

    def remove_item(self, user_id: str, product_id: str) -> None:
        lock = self._lock_for(user_id)
        if lock is None:
            return
        with lock:
            cart = self._carts.get(user_id)
            if not cart:
                return
            self._carts[user_id] = [i for i in cart if i.product_id != product_id]

    def set_quantity(self, user_id: str, product_id: str, qty: int) -> None:
        if isinstance(qty, bool) or not isinstance(qty, int):
            raise InvalidInput(f"Quantity must be an integer, got {qty!r}")
        lock = self._lock_for(user_id)
        if lock is None:
            return
        with lock:
            if qty <= 0:
                self.remove_item(user_id, product_id)
                return
            item = next((i for i in self._carts.get(user_id, []) if i.product_id == product_id), None)
            if item:
                item.quantity = qty

    def clear(self, user_id: str) -> None:
        lock = self._lock_for(user_id)
        if lock is None:
            return
        with lock:
            self._carts.pop(user_id, None)

    def purge_product(self, product_id: str) -> None:
        with self._locks_guard:
            user_ids = list(self._locks)
        for user_id in user_ids:
            self.remove_item(user_id, product_id)

    def tracked_users(self) -> List[str]:
        """Users that have had a cart at some point."""
        with self._locks_guard:
            return list(self._locks)


class UserDirectory:
    def __init__(self, carts: CartStore, clock: Clock = utcnow) -> None:
        self.carts = carts
        self.clock = clock
        self._users: Dict[str, UserData] = {}
        self._lock = threading.Lock()

    def add(self, name: str, user_id: Optional[str] = None) -> str:
        name = _clean_name(name, "User")
        with self._lock:
            if user_id is None:
                user_id = f"user_{uuid.uuid4().hex[:12]}"
            elif user_id in self._users:
                raise InvalidInput(f"User {user_id} already exists")
            self._users[user_id] = UserData(id=user_id, name=name, created_at=self.clock(), is_active=True)
        logger.debug("user added: %s (%s)", user_id, name)
        return user_id

    def get(self, user_id: str) -> Optional[UserData]:
        with self._lock:
            return self._users.get(user_id)

    def require_active(self, user_id: str) -> UserData:
        user = self.get(user_id)
        if user is None or not user.is_active:
            raise UserNotFound(user_id)
        return user

    def deactivate(self, user_id: str) -> None:
        with self._lock:
            user = self._users.get(user_id)
            if user is None:
                raise UserNotFound(user_id)
            if not user.is_active:
                return
            active = sum(1 for u in self._users.values() if u.is_active)
            if active <= 1:
                raise CannotRemoveLastActiveUser(user_id)
            self._users[user_id] = replace(user, is_active=False)
        self.carts.clear(user_id)
        logger.debug("user deactivated: %s", user_id)

    def list_active(self) -> List[UserData]:
        with self._lock:
            return [u for u in self._users.values() if u.is_active]

    def list_all(self) -> List[UserData]:
        with self._lock:
            return list(self._users.values())


class DiscountRegistry:
    """Issued codes. One lock serializes redemption and issuance."""

    def __init__(self) -> None:
        self._codes: Dict[str, DiscountCode] = {}
        self._lock = threading.Lock()

    def lookup(self, code: str) -> Optional[DiscountCode]:
        with self._lock:
            found = self._codes.get(code)
            return replace(found) if found else None

    def list(self) -> List[DiscountCode]:
        with self._lock:
            return [replace(c) for c in self._codes.values()]

    def count(self) -> int:
        with self._lock:
            return len(self._codes)

    def redeem(self, code: str) -> DiscountCode:
        with self._lock:
            found = self._codes.get(code)
            if found is None:
                raise CodeNotFound(code)
            if found.is_used:
                raise CodeAlreadyUsed(code)
            found.is_used = True
            return replace(found)

    def release(self, code: str) -> None:
        with self._lock:
            found = self._codes.get(code)
            if found is not None:
                found.is_used = False

    def issue_if_due(
        self,
        order_count: int,
        interval: int,
        percent: Decimal,
        generate: Callable[[], str],
    ) -> Optional[DiscountCode]:
        if order_count == 0 or order_count % interval != 0:
            return None

        with self._lock:
            if any(c.generated_for_order_index == order_count for c in self._codes.values()):
                raise DuplicateCodeGeneration(order_count)

            for _ in range(MAX_CODE_ATTEMPTS):
                code = generate()
                if code not in self._codes:
                    break
            else:
                raise CodeSpaceExhausted(f"No free discount code after {MAX_CODE_ATTEMPTS} attempts")

            issued = DiscountCode(code=code, percentage=percent, is_used=False, generated_for_order_index=order_count)
            self._codes[code] = issued
            return replace(issued)


class OrderLedger:
    def __init__(self) -> None:
        self._orders: List[Order] = []
        self._lock = threading.Lock()

    def count(self) -> int:
        with self._lock:
            return len(self._orders)

    def list(self) -> List[Order]:
        with self._lock:
            return list(self._orders)

    def append(self, build: Callable[[int], Order]) -> Order:
        """Allocate the next order number and append the order built for it."""
        with self._lock:
            number = len(self._orders) + 1
            order = build(number)
            if order.number != number:
                raise ValueError(f"Order built for #{order.number}, expected #{number}")
            self._orders.append(order)
            return order


class Store:
    """
    The set of in-memory stores, created once and shared by the services.

    Besides the stores it keeps a list of log lines (handy for the demo and
    for tests).
    """

    def __init__(self, clock: Clock = utcnow) -> None:
        self.clock = clock
        self.catalog = Catalog()
        self.carts = CartStore(self.catalog)
        self.users = UserDirectory(self.carts, clock=clock)
        self.discounts = DiscountRegistry()
        self.orders = OrderLedger()

        self.logs: List[str] = []

    def log(self, message: str) -> None:
        self.logs.append(message)
        logger.info(message)

    # Seed helpers
    def add_user(self, user_id: str, name: str) -> None:
        self.users.add(name, user_id=user_id)

    def add_product(self, product_id: str, name: str, price) -> None:
        self.catalog.add(name, price, product_id=product_id)


DEFAULT_PRODUCTS = (
    ("p1", "Ergonomic Keyboard", Decimal("150")),
    ("p2", "Wireless Mouse", Decimal("50")),
    ("p3", "HD Monitor", Decimal("300")),
    ("p4", "USB-C Hub", Decimal("40")),
    ("p5", "Laptop Stand", Decimal("45")),
    ("p6", "Noise Cancelling Headphones", Decimal("200")),
)

DEFAULT_USERS = (
    ("User_A", "User A"),
    ("User_B", "User B"),
    ("User_C", "User C"),
    ("User_D", "User D"),
)


def seed(store: Store) -> None:
    for product_id, name, price in DEFAULT_PRODUCTS:
        store.add_product(product_id, name, price)
    for user_id, name in DEFAULT_USERS:
        store.add_user(user_id, name)
