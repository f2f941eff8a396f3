from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation

from storefront.errors import InvalidInput


@dataclass(frozen=True, slots=True)
class StorefrontConfig:
    """
    Engine parameters.

    milestone_interval: a discount code becomes due every N committed orders.
    discount_percent: percentage granted by every code minted from now on.
    """

    milestone_interval: int = 3
    discount_percent: Decimal = field(default_factory=lambda: Decimal("10"))

    def __post_init__(self) -> None:
        if isinstance(self.milestone_interval, bool) or not isinstance(self.milestone_interval, int):
            raise InvalidInput(f"milestone_interval must be an integer, got {self.milestone_interval!r}")
        if self.milestone_interval < 1:
            raise InvalidInput(f"milestone_interval must be >= 1, got {self.milestone_interval}")
        try:
            percent = Decimal(str(self.discount_percent))
        except InvalidOperation:
            raise InvalidInput(f"discount_percent must be a number, got {self.discount_percent!r}") from None
        if not percent.is_finite() or not (Decimal("0") < percent <= Decimal("100")):
            raise InvalidInput(f"discount_percent must be in (0, 100], got {percent}")
        object.__setattr__(self, "discount_percent", percent)
