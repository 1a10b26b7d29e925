import logging
from typing import Optional

logger = logging.getLogger(__name__)

BASE_ORDER = 100.0
ORDER_GAP = 100.0


def has_gap(left: float, right: float) -> bool:
    """Return True while a float strictly between ``left`` and ``right`` exists."""
    mid = (left + right) / 2
    return left < mid < right


def allocate(left: Optional[float], right: Optional[float]) -> float:
    """Return an order key for a slot between ``left`` and ``right``.

    ``left`` or ``right`` may be ``None`` to indicate the head or tail of the
    container. Keys are never renumbered: repeated inserts at one boundary
    halve the gap each time until the two neighbours compare equal as floats.
    When that happens the returned key ties with a neighbour and a warning is
    logged; siblings then fall back to an arbitrary but stable tie order.
    """
    if left is None and right is None:
        return BASE_ORDER
    if left is None:
        key = right / 2
        if not key < right:
            logger.warning("no order key left before %r", right)
        return key
    if right is None:
        return left + ORDER_GAP
    if not has_gap(left, right):
        logger.warning("order keys %r and %r have no gap left", left, right)
    return (left + right) / 2


def append_order(last: Optional[float]) -> float:
    return allocate(last, None)
