"""
Line-Item Price Resolution

Historical order lines carry up to three candidate unit prices. The realized
sale price is resolved in priority order:

1. variant price (line discount applied)
2. price snapshot taken at order time; the discount is applied only when the
   snapshot still equals the current product price, i.e. it was captured
   undiscounted
3. current product price (line discount applied)
4. zero, meaning the line contributes nothing
"""

from shop_analytics.models.schemas import OrderLine
from shop_analytics.transformation.normalizers import round_half_up


def apply_discount(price: float, discount_pct: float) -> int:
    """``round(price * (100 - pct) / 100)`` floored at zero"""
    if discount_pct > 0:
        return max(0, round_half_up(price * (100 - discount_pct) / 100))
    return max(0, round_half_up(price))


def resolve_unit_price(line: OrderLine) -> int:
    """Realized unit sale price of one order line, in minor units"""
    discount = line.discount_pct

    if line.variant_price is not None:
        return apply_discount(line.variant_price, discount)

    if line.price_snapshot is not None:
        if (
            discount > 0
            and line.product_price is not None
            and round_half_up(line.price_snapshot) == round_half_up(line.product_price)
        ):
            return apply_discount(line.price_snapshot, discount)
        return max(0, round_half_up(line.price_snapshot))

    if line.product_price is not None:
        return apply_discount(line.product_price, discount)

    return 0


def line_revenue(line: OrderLine) -> int:
    """Realized revenue of a line: unit price times quantity"""
    return resolve_unit_price(line) * line.quantity
