"""Partition orders by instrument."""

from typing import Dict, List

from .models import Order


def group_by_instrument(orders: List[Order]) -> Dict[str, List[Order]]:
    """Group orders by instrument.

    Groups appear in first-seen order and keep the relative input order of
    their orders. Nothing is sorted.

    Args:
        orders: Orders in any order

    Returns:
        Mapping of instrument to its orders
    """
    groups: Dict[str, List[Order]] = {}
    for order in orders:
        groups.setdefault(order.instrument, []).append(order)
    return groups
