"""
Test Suite for Fixed-Breakpoint Bucketing

Author: Survey Analytics Team
Date: 2025
"""

import unittest

import numpy as np
import pandas as pd

from panel_bucketing import AGE_BREAKPOINTS, AGE_LABELS, add_age_bucket, bucketize
from panel_errors import OutOfRangeError
from panel_loader import table_from_frame


class TestBucketize(unittest.TestCase):

    def setUp(self):
        self.ages = [17, 18, 24, 25, 65, 90]

    def test_reference_age_groups(self):
        """Left-inclusive buckets; 17 is below the first breakpoint."""
        buckets = bucketize(self.ages, AGE_BREAKPOINTS, AGE_LABELS)

        # 1-based bucket numbers, -1 marks undefined
        numbers = [code + 1 if code >= 0 else None for code in buckets.codes]
        self.assertEqual(numbers, [None, 1, 1, 2, 6, 6])
        self.assertTrue(pd.isna(buckets[0]))
        self.assertEqual(buckets[4], '65+')

    def test_ordered_categorical(self):
        buckets = bucketize(self.ages, AGE_BREAKPOINTS, AGE_LABELS)

        self.assertTrue(buckets.ordered)
        self.assertEqual(list(buckets.categories), AGE_LABELS)
        self.assertLess(buckets[1], buckets[3])

    def test_raise_policy(self):
        with self.assertRaises(OutOfRangeError):
            bucketize(self.ages, AGE_BREAKPOINTS, AGE_LABELS, out_of_range='raise')
        # In-range values pass under the strict policy
        buckets = bucketize([18, 40, 99], AGE_BREAKPOINTS, AGE_LABELS, out_of_range='raise')
        self.assertEqual(list(buckets.codes), [0, 2, 5])

    def test_nulls_are_not_out_of_range(self):
        buckets = bucketize([np.nan, 30], AGE_BREAKPOINTS, AGE_LABELS, out_of_range='raise')
        self.assertEqual(list(buckets.codes), [-1, 1])

    def test_right_inclusive(self):
        buckets = bucketize([18, 25, 26], [18, 25, 35], ['a', 'b'], right_inclusive=True)
        self.assertEqual(list(buckets.codes), [-1, 0, 1])

    def test_invalid_configuration(self):
        with self.assertRaises(ValueError):
            bucketize(self.ages, [18, 25, 25, 40], ['a', 'b', 'c'])
        with self.assertRaises(ValueError):
            bucketize(self.ages, [18, 25, 35], ['a', 'b', 'c'])
        with self.assertRaises(ValueError):
            bucketize(self.ages, AGE_BREAKPOINTS, AGE_LABELS, out_of_range='clamp')


class TestAddAgeBucket(unittest.TestCase):

    def test_adds_column_to_new_table(self):
        table = table_from_frame(pd.DataFrame({'caseid': ['a', 'b', 'c'],
                                               'pre_age': [22, 50, 80]}))
        bucketed = add_age_bucket(table, 'pre_age')

        self.assertEqual(bucketed.frame['age_group'].astype(str).tolist(),
                         ['18-24', '45-54', '65+'])
        self.assertNotIn('age_group', table.columns)


if __name__ == '__main__':
    unittest.main(verbosity=2)
