# inventory/engine/quantities.py

"""
FIXED-POINT ARITHMETIC (ENGINE-WIDE)

Purpose:
- One place that turns caller input into Decimal quantities, costs and money.
- Every engine component goes through these helpers; no float ever reaches
  a batch, a movement or a valuation.

Scales:
- quantity   -> 3 places  (0.001 is the smallest stockable unit)
- unit cost  -> 4 places
- money      -> 2 places  (ROUND_HALF_UP)
- avg. cost  -> 4 places  (ROUND_HALF_UP)

Database columns use the same scales (NUMERIC(14,3) / NUMERIC(14,4)).
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from inventory.engine.errors import ValidationError

QUANTITY_PLACES = Decimal("0.001")
COST_PLACES = Decimal("0.0001")
MONEY_PLACES = Decimal("0.01")

# largest values the NUMERIC(14,3) / NUMERIC(14,4) columns can hold
MAX_QUANTITY = Decimal("99999999999.999")
MAX_UNIT_COST = Decimal("9999999999.9999")

ZERO = Decimal("0")
ZERO_QUANTITY = Decimal("0.000")
ZERO_MONEY = Decimal("0.00")


def _to_decimal(value, *, field_name: str) -> Decimal:
    if value is None or value == "" or value == "null":
        raise ValidationError(f"{field_name} is required", field=field_name)

    if isinstance(value, bool):
        # bool is an int subclass
        raise ValidationError(f"{field_name} must be a number", field=field_name)

    if isinstance(value, float):
        # go through repr so 0.1 stays 0.1 and not 0.1000000000000000055...
        value = repr(value)

    try:
        dec = Decimal(str(value).strip())
    except (InvalidOperation, ValueError, TypeError) as exc:
        raise ValidationError(f"{field_name} must be a valid decimal", field=field_name) from exc

    if not dec.is_finite():
        raise ValidationError(f"{field_name} must be a finite number", field=field_name)

    return dec


def _quantize_exact(dec: Decimal, places: Decimal, limit: Decimal, *, field_name: str) -> Decimal:
    if abs(dec) > limit:
        raise ValidationError(f"{field_name} cannot exceed {limit} in magnitude", field=field_name)

    quantized = dec.quantize(places, rounding=ROUND_HALF_UP)
    if quantized != dec:
        raise ValidationError(
            f"{field_name} supports at most {abs(places.as_tuple().exponent)} decimal places",
            field=field_name,
        )
    return quantized


def to_quantity(value, *, field_name: str = "quantity") -> Decimal:
    """Normalize a (possibly signed) quantity. Extra precision is rejected, never rounded."""
    return _quantize_exact(
        _to_decimal(value, field_name=field_name), QUANTITY_PLACES, MAX_QUANTITY, field_name=field_name
    )


def to_positive_quantity(value, *, field_name: str = "quantity") -> Decimal:
    qty = to_quantity(value, field_name=field_name)
    if qty <= ZERO:
        raise ValidationError(f"{field_name} must be greater than zero", field=field_name)
    return qty


def to_nonzero_quantity(value, *, field_name: str = "quantity_delta") -> Decimal:
    qty = to_quantity(value, field_name=field_name)
    if qty == ZERO:
        raise ValidationError(f"{field_name} cannot be 0", field=field_name)
    return qty


def to_unit_cost(value, *, field_name: str = "unit_cost") -> Decimal:
    cost = _quantize_exact(
        _to_decimal(value, field_name=field_name), COST_PLACES, MAX_UNIT_COST, field_name=field_name
    )
    if cost < ZERO:
        raise ValidationError(f"{field_name} cannot be negative", field=field_name)
    return cost


def money(value) -> Decimal:
    """Round an already-computed amount to money scale."""
    return Decimal(value).quantize(MONEY_PLACES, rounding=ROUND_HALF_UP)


def average_cost(value) -> Decimal:
    return Decimal(value).quantize(COST_PLACES, rounding=ROUND_HALF_UP)


def quantity(value) -> Decimal:
    """Re-scale an internal quantity (sums, differences) without validation."""
    return Decimal(value).quantize(QUANTITY_PLACES, rounding=ROUND_HALF_UP)


def line_value(quantity_: Decimal, unit_cost: Decimal) -> Decimal:
    """Exact (unrounded) value of quantity x unit cost."""
    return Decimal(quantity_) * Decimal(unit_cost)
