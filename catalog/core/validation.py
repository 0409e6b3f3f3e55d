"""
Input Validation

Field-level checks for product create and update inputs. Every rule runs, and
all violations are reported together instead of stopping at the first.
"""

from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional

from catalog.core.errors import ValidationError
from catalog.core.models import ProductInput

NAME_MIN_LENGTH = 2


def _check_name(value: Any) -> Optional[str]:
    if not value or len(str(value).strip()) < NAME_MIN_LENGTH:
        return f"Product name must be at least {NAME_MIN_LENGTH} characters long"
    return None


def _check_category(value: Any) -> Optional[str]:
    if not value or not str(value).strip():
        return "Product category is required"
    return None


def _check_sku(value: Any) -> Optional[str]:
    if not value or not str(value).strip():
        return "Product SKU is required"
    return None


def _check_price(value: Any) -> Optional[str]:
    if value is not None and Decimal(str(value)) < 0:
        return "Product price cannot be negative"
    return None


def _check_stock(value: Any) -> Optional[str]:
    if value is not None and value < 0:
        return "Stock quantity cannot be negative"
    return None


# field -> rule; rules for required fields also fire on empty values
FIELD_RULES: Dict[str, Callable[[Any], Optional[str]]] = {
    "name": _check_name,
    "category": _check_category,
    "sku": _check_sku,
    "price": _check_price,
    "stock_quantity": _check_stock,
}


def collect_input_errors(data: ProductInput) -> List[str]:
    """Violations for a create input, in rule order"""
    errors = []
    for field_name, rule in FIELD_RULES.items():
        message = rule(getattr(data, field_name))
        if message:
            errors.append(message)
    return errors


def collect_change_errors(changes: Dict[str, Any]) -> List[str]:
    """Violations among the fields a partial update actually supplies"""
    errors = []
    for field_name, rule in FIELD_RULES.items():
        if field_name not in changes:
            continue
        message = rule(changes[field_name])
        if message:
            errors.append(message)
    return errors


def validate_input(data: ProductInput) -> None:
    errors = collect_input_errors(data)
    if errors:
        raise ValidationError(errors)


def validate_changes(changes: Dict[str, Any]) -> None:
    errors = collect_change_errors(changes)
    if errors:
        raise ValidationError(errors)
