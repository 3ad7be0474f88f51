from __future__ import annotations

from fractions import Fraction


def shutter_seconds_to_fraction(value: float | None, max_denominator: int = 8000) -> str | None:
    if value is None:
        return None
    if value <= 0:
        return None
    if value >= 1:
        return f"{value:g}s"

    frac = Fraction(value).limit_denominator(max_denominator)
    return f"{frac.numerator}/{frac.denominator}"


def focal_range(min_focal: float, max_focal: float) -> str | None:
    if min_focal <= 0 and max_focal <= 0:
        return None
    if max_focal <= 0 or abs(max_focal - min_focal) < 0.05:
        return f"{min_focal or max_focal:g}mm"
    return f"{min_focal:g}-{max_focal:g}mm"


def aperture_label(value: float | None) -> str | None:
    if value is None or value <= 0:
        return None
    return f"f/{value:.1f}"
