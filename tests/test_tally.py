"""
Unit tests for tally calculation

Tests tally.py results for each question mode
"""

import unittest

from votebridge.modes import QuestionMode
from votebridge.registry import DeviceRegistry
from votebridge.tally import compute_tally


class TestTwoChoiceTally(unittest.TestCase):
    """Test yes/no tallies"""

    def setUp(self):
        """Set up test fixtures"""
        self.registry = DeviceRegistry(10)

    def test_yes_no_split(self):
        """Test three answers {0, 1, 1} with one device silent"""
        self.registry.set(0, 0)
        self.registry.set(1, 1)
        self.registry.set(2, 1)

        result = compute_tally(QuestionMode.TWO, self.registry)

        self.assertEqual(result, {"yes": 2, "no": 1})

    def test_single_no(self):
        """Test that answer 0 adds nothing to yes and one to no"""
        self.registry.set(5, 0)
        self.assertEqual(compute_tally(QuestionMode.TWO, self.registry), {"yes": 0, "no": 1})

    def test_single_yes(self):
        """Test that answer 1 adds one to yes and nothing to no"""
        self.registry.set(5, 1)
        self.assertEqual(compute_tally(QuestionMode.TWO, self.registry), {"yes": 1, "no": 0})

    def test_no_answers(self):
        """Test an empty round"""
        self.assertEqual(compute_tally(QuestionMode.TWO, self.registry), {"yes": 0, "no": 0})

    def test_each_device_counted_once(self):
        """Test that yes + no equals the number of 0/1 answers"""
        for address, value in enumerate([1, 0, 1, 1, 0, 0, 1]):
            self.registry.set(address, value)

        result = compute_tally(QuestionMode.TWO, self.registry)

        self.assertEqual(result["yes"] + result["no"], 7)
        self.assertEqual(result, {"yes": 4, "no": 3})


class TestMultipleChoiceTally(unittest.TestCase):
    """Test a/b/c/d tallies"""

    def setUp(self):
        """Set up test fixtures"""
        self.registry = DeviceRegistry(10)

    def test_buckets(self):
        """Test answers {0, 2, 2, 3}"""
        for address, value in enumerate([0, 2, 2, 3]):
            self.registry.set(address, value)

        result = compute_tally(QuestionMode.MULTIPLE, self.registry)

        self.assertEqual(result, {"a": 1, "b": 0, "c": 2, "d": 1})

    def test_bucket_sum_matches_answered(self):
        """Test that bucket counts add up to the answered devices"""
        for address, value in [(0, 3), (2, 1), (4, 1), (6, 0), (9, 2)]:
            self.registry.set(address, value)

        result = compute_tally(QuestionMode.MULTIPLE, self.registry)

        self.assertEqual(sum(result.values()), self.registry.answered_count())

    def test_no_answers(self):
        """Test that all buckets are present even when empty"""
        self.assertEqual(
            compute_tally(QuestionMode.MULTIPLE, self.registry),
            {"a": 0, "b": 0, "c": 0, "d": 0},
        )


class TestNoQuestionTally(unittest.TestCase):
    """Test tally before any question started"""

    def test_empty_result(self):
        """Test that NONE gives an empty result, not an error"""
        registry = DeviceRegistry(4)
        registry.set(0, 1)
        self.assertEqual(compute_tally(QuestionMode.NONE, registry), {})


if __name__ == '__main__':
    unittest.main()
