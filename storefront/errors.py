from __future__ import annotations


class StorefrontError(Exception):
    pass


class NotFoundError(StorefrontError, LookupError):
    pass


class ProductNotFound(NotFoundError):
    def __init__(self, product_id: str):
        super().__init__(f"Product {product_id} not found")
        self.product_id = product_id


class UserNotFound(NotFoundError):
    def __init__(self, user_id: str):
        super().__init__(f"User {user_id} not found")
        self.user_id = user_id


class CodeNotFound(NotFoundError):
    def __init__(self, code: str):
        super().__init__(f"Invalid discount code {code}")
        self.code = code


InvalidDiscountCode = CodeNotFound


class EmptyCart(StorefrontError):
    def __init__(self, user_id: str):
        super().__init__(f"Cart of user {user_id} is empty")
        self.user_id = user_id


class CodeAlreadyUsed(StorefrontError):
    def __init__(self, code: str):
        super().__init__(f"Discount code {code} has already been used")
        self.code = code


class DuplicateCodeGeneration(StorefrontError):
    def __init__(self, order_index: int):
        super().__init__(f"Code already generated for order #{order_index}")
        self.order_index = order_index


class CodeSpaceExhausted(StorefrontError):
    pass


class InvalidInput(StorefrontError, ValueError):
    pass


class CannotRemoveLastActiveUser(StorefrontError):
    def __init__(self, user_id: str):
        super().__init__(f"Cannot remove the last active user {user_id}")
        self.user_id = user_id
