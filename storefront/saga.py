from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import List, Optional, Tuple

from storefront.errors import EmptyCart, StorefrontError
from storefront.models import CartItem, DiscountCode, Order, OrderItem, cart_total, money
from storefront.store import Store


class SagaError(StorefrontError):
    pass


class CheckoutStatus(Enum):
    PENDING = "Pending"
    DISCOUNT_VALIDATED = "DiscountValidated"
    COMMITTED = "Committed"
    ABORTED = "Aborted"


@dataclass(slots=True)
class CheckoutState:
    """Working data of one checkout while its steps run."""

    user_id: str
    items: Tuple[CartItem, ...]
    subtotal: Decimal
    code: Optional[str] = None
    discount: Decimal = Decimal("0.00")
    redeemed: Optional[DiscountCode] = None
    order: Optional[Order] = None
    status: CheckoutStatus = CheckoutStatus.PENDING

    @property
    def final_total(self) -> Decimal:
        return money(self.subtotal - self.discount)


class Step(ABC):
    def __init__(self, store: Store, state: CheckoutState):
        self.store = store
        self.state = state

    @property
    def tag(self) -> str:
        return f"[checkout={self.state.user_id}]"

    @abstractmethod
    def name(self) -> str: ...

    @abstractmethod
    def execute(self) -> None: ...

    @abstractmethod
    def compensate(self) -> None: ...

    def run(self) -> None:
        self.store.log(f"{self.tag} STEP {self.name()}")
        self.execute()
        self.store.log(f"{self.tag} STEP {self.name()} OK")

    def run_compensation(self) -> None:
        self.store.log(f"{self.tag} COMPENSATE {self.name()}")
        self.compensate()
        self.store.log(f"{self.tag} COMPENSATE {self.name()} OK")


class RedeemDiscountCode(Step):
    def name(self) -> str:
        return "RedeemDiscountCode"

    def execute(self) -> None:
        code = self.store.discounts.redeem(self.state.code)
        self.state.redeemed = code
        self.state.discount = money(self.state.subtotal * code.percentage / Decimal("100"))
        self.state.status = CheckoutStatus.DISCOUNT_VALIDATED
        self.store.log(f"{self.tag} code redeemed: {code.code} ({code.percentage}% = {self.state.discount})")

    def compensate(self) -> None:
        # The order was never committed, so the redemption did not happen.
        self.store.discounts.release(self.state.code)
        self.store.log(f"{self.tag} code released: {self.state.code}")


class CommitOrder(Step):
    def name(self) -> str:
        return "CommitOrder"

    def _build(self, number: int) -> Order:
        return Order(
            id=f"ORD-{number}",
            number=number,
            user_id=self.state.user_id,
            items=tuple(OrderItem.from_cart_item(item) for item in self.state.items),
            total_amount=self.state.final_total,
            discount_applied=self.state.discount,
            discount_code=self.state.code if self.state.redeemed else None,
            timestamp=self.store.clock(),
        )

    def execute(self) -> None:
        order = self.store.orders.append(self._build)
        self.store.carts.clear(self.state.user_id)
        self.state.order = order
        self.state.status = CheckoutStatus.COMMITTED
        self.store.log(f"{self.tag} order committed: {order.id} total={order.total_amount}")

    def compensate(self) -> None:
        # Commit is the last step; the ledger is append-only.
        self.store.log(f"{self.tag} commit has no compensation")


class CheckoutSaga:
    """
    Turns a user's cart into an order.

    The user's cart stays locked for the whole run, so the ledger append and
    the cart clear are seen by other callers as one unit. A failing step
    compensates the completed ones in reverse order and the error is raised
    to the caller.
    """

    def __init__(self, store: Store):
        self.store = store

    def execute(self, user_id: str, code: Optional[str] = None, fail_at_step: Optional[str] = None) -> Order:
        tag = f"[checkout={user_id}]"
        with self.store.carts.locked(user_id) as has_cart:
            items = self.store.carts.get(user_id) if has_cart else []
            self.store.log(f"{tag} CHECKOUT START items={len(items)} code={code}")
            if not items:
                self.store.log(f"{tag} CHECKOUT FAILED: cart is empty")
                raise EmptyCart(user_id)

            state = CheckoutState(
                user_id=user_id,
                items=tuple(items),
                subtotal=cart_total(items),
                code=code or None,
            )

            steps: List[Step] = []
            if state.code:
                steps.append(RedeemDiscountCode(self.store, state))
            steps.append(CommitOrder(self.store, state))

            completed: List[Step] = []
            try:
                for step in steps:
                    if fail_at_step == step.name():
                        raise SagaError(f"Artificial failure at step {step.name()}")
                    step.run()
                    completed.append(step)
            except Exception as e:
                state.status = CheckoutStatus.ABORTED
                self.store.log(f"{tag} CHECKOUT FAILED: {e}")
                for step in reversed(completed):
                    try:
                        step.run_compensation()
                    except Exception as comp_exc:
                        self.store.log(f"{tag} COMPENSATION FAILED at {step.name()}: {comp_exc}")
                raise

            self.store.log(f"{tag} CHECKOUT OK {state.order.id}")
            return state.order
