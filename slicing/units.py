"""
Geometrical Units

Estimation of the unit a transform maps into and conversion factors
between units.
"""

import logging
import numpy as np

from config import Unit, UNIT_IN_MM, UNIT_ESTIMATION_ORDER


def scaling_factor(source: Unit, target: Unit) -> float:
    """
    Factor that converts a length expressed in `source` into `target`.

    Example: scaling_factor(Unit.MM, Unit.CM) == 0.1
    """
    return UNIT_IN_MM[Unit(source)] / UNIT_IN_MM[Unit(target)]


def estimate_units(size: float) -> Unit:
    """
    Guess the unit of an anatomical object from its size.

    A human head is about 20 cm across, so the unit whose numerical size
    matches that best is selected.

    Args:
        size: Characteristic size of the object (e.g. bounding box diagonal)

    Returns:
        Estimated Unit
    """
    if not np.isfinite(size) or size <= 0:
        raise ValueError(f"Cannot estimate units from size {size}")

    index = int(np.floor(np.log10(size) + 1.8 + 0.5))
    if index > len(UNIT_ESTIMATION_ORDER):
        index = len(UNIT_ESTIMATION_ORDER)
        logging.warning(f"Assuming that the units are '{UNIT_ESTIMATION_ORDER[index - 1].value}'")
    elif index < 1:
        index = 1
        logging.warning(f"Assuming that the units are '{UNIT_ESTIMATION_ORDER[index - 1].value}'")
    return UNIT_ESTIMATION_ORDER[index - 1]
