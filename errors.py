"""
Error taxonomy for the storefront API

Business procedures raise these exceptions; main.py translates them (and
store, cast and signing errors) into the uniform JSON error body.
"""
from typing import Dict, Optional


class AppError(Exception):
    status_code = 500

    def __init__(self, message: str, status_code: Optional[int] = None, errors: Optional[Dict[str, str]] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.errors = errors


class ValidationError(AppError):
    status_code = 400


class NotFound(AppError):
    status_code = 404


class Unauthenticated(AppError):
    status_code = 401


class Forbidden(AppError):
    status_code = 403


class Conflict(AppError):
    status_code = 409


class DomainError(AppError):
    status_code = 400


class InvalidToken(Unauthenticated):
    pass


class TokenExpired(Unauthenticated):
    pass


class EmptyOrder(ValidationError):
    def __init__(self):
        super().__init__("Add at least one product to your order")


class ProductNotFound(NotFound):
    def __init__(self, product_id):
        super().__init__(f"Product not found: {product_id}")
        self.product_id = product_id


class InsufficientStock(DomainError):
    def __init__(self, name: str, available: int):
        super().__init__(f"Insufficient stock for {name}. Available: {available}")
        self.available = available


class InvalidState(DomainError):
    pass


class PurchaseRequired(Forbidden):
    def __init__(self):
        super().__init__("You must purchase this product before reviewing it")


class DuplicateReview(DomainError):
    def __init__(self):
        super().__init__("You have already reviewed this product")


class TooManyImages(ValidationError):
    def __init__(self, limit: int):
        super().__init__(f"You cannot attach more than {limit} images")


class CircularCategory(DomainError):
    pass
