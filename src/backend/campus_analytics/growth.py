from __future__ import annotations

from .models import GrowthIndicator


def growth(current: float, previous: float) -> GrowthIndicator:
    """
    Period-over-period change for a dashboard card.

    A zero baseline never divides: ``0 -> 0`` is neutral and ``0 -> n`` is the
    fixed ``+100%`` marker.
    """

    if previous == 0:
        if current == 0:
            return GrowthIndicator(pct="0%", up=False, neutral=True)
        return GrowthIndicator(pct="+100%", up=True, neutral=False)

    change = (current - previous) / previous * 100
    sign = "+" if change >= 0 else ""
    return GrowthIndicator(pct=f"{sign}{change:.1f}%", up=change > 0, neutral=change == 0)
