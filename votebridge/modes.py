"""
Question modes

The integer codes are the ones reported to HTTP clients as "questionMode".
"""

from enum import IntEnum
from typing import Dict


class QuestionMode(IntEnum):
    """Active question format"""
    NONE = -1      # no question started yet
    TWO = 2        # yes / no
    MULTIPLE = 3   # a / b / c / d


# Names accepted by QuestionSession.start()
QUESTION_MODES: Dict[str, QuestionMode] = {
    "two": QuestionMode.TWO,
    "multiple": QuestionMode.MULTIPLE,
}
