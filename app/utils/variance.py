from decimal import Decimal, ROUND_HALF_EVEN
from typing import Optional


def calculate_variance(expected_quantity: int, counted_quantity: Optional[int]) -> Optional[int]:
    """Counted minus expected; None while the item is uncounted."""
    if counted_quantity is None:
        return None
    return counted_quantity - expected_quantity


def calculate_variance_percent(
    expected_quantity: int,
    counted_quantity: Optional[int],
    precision: int = 2
) -> Optional[Decimal]:
    """
    Variance as a percentage of the expected quantity, rounded half to even at
    `precision` places. Zero when nothing was expected.
    """
    if counted_quantity is None:
        return None
    if expected_quantity == 0:
        return Decimal(0)
    percent = Decimal(counted_quantity - expected_quantity) / Decimal(expected_quantity) * 100
    return percent.quantize(Decimal(1).scaleb(-precision), rounding=ROUND_HALF_EVEN)


def calculate_progress_percent(counted_items: int, total_items: int) -> Decimal:
    if total_items == 0:
        return Decimal(0)
    return (Decimal(counted_items) / Decimal(total_items) * 100).quantize(Decimal(1), rounding=ROUND_HALF_EVEN)
