"""
Tally calculation

Reduces the registry into the result summary for the active mode.
"""

from typing import Dict

import numpy as np

from .modes import QuestionMode
from .registry import DeviceRegistry

MULTIPLE_CHOICE_BUCKETS = ("a", "b", "c", "d")


def tally_two_choice(values: np.ndarray) -> Dict[str, int]:
    """
    Yes/no tally

    Each answered device adds its raw value to "yes" and the negation of
    it (1 for 0, otherwise 0) to "no".
    """
    return {
        "yes": int(values.sum()),
        "no": int(np.count_nonzero(values == 0)),
    }


def tally_multiple_choice(values: np.ndarray) -> Dict[str, int]:
    """Count answers per bucket, 0 -> a ... 3 -> d"""
    counts = np.bincount(values, minlength=len(MULTIPLE_CHOICE_BUCKETS))
    return {name: int(counts[i]) for i, name in enumerate(MULTIPLE_CHOICE_BUCKETS)}


def compute_tally(mode: QuestionMode, registry: DeviceRegistry) -> Dict[str, int]:
    """
    Compute the result summary for a question

    Args:
        mode: Question mode the answers were collected under
        registry: Device responses

    Returns:
        {"yes", "no"} for TWO, {"a", "b", "c", "d"} for MULTIPLE,
        empty dict when no question was ever started
    """
    values = registry.answered_values().astype(np.int64)

    if mode == QuestionMode.TWO:
        return tally_two_choice(values)
    if mode == QuestionMode.MULTIPLE:
        return tally_multiple_choice(values)
    return {}
