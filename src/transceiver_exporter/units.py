"""Value conversions shared by the metric emitter."""

from __future__ import annotations

import math


def milliwatts_to_dbm(mw: float) -> float:
    """Convert an optical power reading from milliwatts to dBm.

    No bounds checking is done: ``0`` yields ``-inf`` and negative input
    yields ``nan``, the results of an IEEE ``log10``. ``math.log10`` raises
    for that domain, so it is mapped here instead.
    """
    try:
        return 10 * math.log10(mw)
    except ValueError:
        if mw == 0:
            return -math.inf
        return math.nan


def bool_to_float(value: bool) -> float:
    return 1.0 if value else 0.0
