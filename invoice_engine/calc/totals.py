"""Invoice totals with item-level and global discounts and a per-rate tax breakdown.

All arithmetic runs on unrounded ``Decimal`` values. Amounts are rounded half-up
to cents only when they are reported, so rounding never compounds across the
discount and tax steps.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional

from invoice_engine.calc.discounts import HUNDRED, ZERO, discount_amount, validate_discount
from invoice_engine.calc.errors import ValidationError
from invoice_engine.calc.models import (
    NO_DISCOUNT,
    Discount,
    InvoiceTotals,
    LineItem,
    LineTotals,
    NoDiscount,
    TaxBreakdownEntry,
    TaxRatePolicy,
)

CENT = Decimal("0.01")
DEFAULT_TAX_POLICY = TaxRatePolicy()

# Largest values the invoice columns hold: Numeric(12, 2) amounts, Numeric(12, 3) quantities
MAX_AMOUNT = Decimal("9999999999.99")
MAX_QUANTITY = Decimal("999999999.999")

SMALL_BUSINESS_CLAUSE = "small_business"  # § 19 UStG
REVERSE_CHARGE_CLAUSE = "reverse_charge"  # § 13b UStG


def money(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def configured_tax_rate(item: LineItem, policy: TaxRatePolicy) -> Decimal:
    rate = item.tax_rate if item.tax_rate is not None else policy.default_rate
    if rate not in policy.allowed_rates:
        allowed = ", ".join(str(r) for r in policy.allowed_rates)
        raise ValidationError(f"Item {item.id}: tax rate {rate}% is not allowed (allowed: {allowed})")
    return rate


def _check_limit(value: Decimal, limit: Decimal, what: str) -> None:
    if value > limit:
        raise ValidationError(f"{what} exceeds the maximum of {limit}")


def validate_item(item: LineItem, policy: TaxRatePolicy) -> None:
    if item.quantity < ZERO:
        raise ValidationError(f"Item {item.id}: quantity cannot be negative")
    if item.unit_price < ZERO:
        raise ValidationError(f"Item {item.id}: unit price cannot be negative")
    _check_limit(item.quantity, MAX_QUANTITY, f"Item {item.id}: quantity")
    _check_limit(item.unit_price, MAX_AMOUNT, f"Item {item.id}: unit price")
    _check_limit(item.quantity * item.unit_price, MAX_AMOUNT, f"Item {item.id}: line total")
    if not isinstance(item.discount, NoDiscount):
        _check_limit(item.discount.value, MAX_AMOUNT, f"Item {item.id}: discount value")
    try:
        validate_discount(item.discount)
    except ValidationError as e:
        raise ValidationError(f"Item {item.id}: {e}") from e
    configured_tax_rate(item, policy)


class _Line:
    __slots__ = ("item", "rate", "pre", "discount", "net")

    def __init__(self, item: LineItem, rate: Decimal) -> None:
        self.item = item
        self.rate = rate
        self.pre = item.quantity * item.unit_price
        self.discount = discount_amount(self.pre, item.discount)
        self.net = self.pre - self.discount


def compute_totals(
    items: Iterable[LineItem],
    global_discount: Optional[Discount] = None,
    force_zero_tax: bool = False,
    tax_policy: Optional[TaxRatePolicy] = None,
) -> InvoiceTotals:
    """Compute subtotal, discounts, tax breakdown and total for a list of items.

    ``force_zero_tax`` is the small-business override: every item is taxed at 0%
    regardless of its configured rate. The override is applied while reading and
    never changes the items themselves.

    Raises ``ValidationError`` for negative quantities, prices or discount values,
    percentages above 100, amounts too large to store and tax rates the policy
    does not allow.
    """
    policy = tax_policy or DEFAULT_TAX_POLICY
    items = list(items)
    global_discount = global_discount or NO_DISCOUNT

    for item in items:
        validate_item(item, policy)
    try:
        validate_discount(global_discount)
    except ValidationError as e:
        raise ValidationError(f"Global discount: {e}") from e
    if not isinstance(global_discount, NoDiscount):
        _check_limit(global_discount.value, MAX_AMOUNT, "Global discount value")

    lines = [_Line(it, ZERO if force_zero_tax else configured_tax_rate(it, policy)) for it in items]

    subtotal = sum((ln.pre for ln in lines), ZERO)
    _check_limit(subtotal, MAX_AMOUNT, "Invoice subtotal")
    item_discount_total = sum((ln.discount for ln in lines), ZERO)
    before_global = sum((ln.net for ln in lines), ZERO)

    taxable_by_rate: dict[Decimal, Decimal] = {}
    for ln in lines:
        taxable_by_rate[ln.rate] = taxable_by_rate.get(ln.rate, ZERO) + ln.net

    # Global discount is spread across the rate groups in proportion to their net.
    global_amount = discount_amount(before_global, global_discount)
    if global_amount > ZERO:
        remaining = 1 - global_amount / before_global
        taxable_by_rate = {rate: taxable * remaining for rate, taxable in taxable_by_rate.items()}

    breakdown = [
        TaxBreakdownEntry(
            rate=rate,
            taxable_amount=money(taxable),
            tax_amount=money(taxable * rate / HUNDRED),
        )
        for rate, taxable in sorted(taxable_by_rate.items(), key=lambda kv: kv[0], reverse=True)
    ]

    discounted_r = money(before_global - global_amount)
    # Reported tax is the sum of the printed per-rate amounts.
    tax_r = sum((entry.tax_amount for entry in breakdown), ZERO)

    return InvoiceTotals(
        subtotal=money(subtotal),
        item_discount_total=money(item_discount_total),
        global_discount_amount=money(global_amount),
        total_discount_amount=money(item_discount_total + global_amount),
        discounted_subtotal=discounted_r,
        tax_breakdown=breakdown,
        tax_amount=money(tax_r),
        total=money(discounted_r + tax_r),
        applies_zero_tax_clause=bool(lines) and all(ln.rate == ZERO for ln in lines),
        force_zero_tax=force_zero_tax,
        lines=[
            LineTotals(
                id=ln.item.id,
                order=ln.item.order,
                effective_tax_rate=ln.rate,
                pre_discount_total=money(ln.pre),
                discount_amount=money(ln.discount),
                net_total=money(ln.net),
            )
            for ln in lines
        ],
    )


def line_totals(item: LineItem, force_zero_tax: bool = False, tax_policy: Optional[TaxRatePolicy] = None) -> LineTotals:
    return compute_totals([item], force_zero_tax=force_zero_tax, tax_policy=tax_policy).lines[0]


def has_discounts(items: Iterable[LineItem]) -> bool:
    return any(not isinstance(it.discount, NoDiscount) for it in items)


def zero_tax_clause(totals: InvoiceTotals) -> Optional[str]:
    """Which legal clause the document must carry, if any. Clause text is up to the renderer."""
    if not totals.applies_zero_tax_clause:
        return None
    return SMALL_BUSINESS_CLAUSE if totals.force_zero_tax else REVERSE_CHARGE_CLAUSE


def totals_match_snapshot(
    totals: InvoiceTotals,
    subtotal: Decimal | None,
    tax_amount: Decimal | None,
    total: Decimal | None,
    tolerance: Decimal = CENT,
) -> bool:
    """Compare persisted snapshot figures against a fresh computation."""
    pairs = ((totals.subtotal, subtotal), (totals.tax_amount, tax_amount), (totals.total, total))
    return all(stored is not None and abs(fresh - Decimal(stored)) <= tolerance for fresh, stored in pairs)
