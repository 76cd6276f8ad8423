"""
Test Suite for Panel Cleaning Utilities

Tests outcome-based row exclusion, duplicate key detection and the
missing-value audit.

Author: Survey Analytics Team
Date: 2025
"""

import types
import unittest
import warnings

import numpy as np
import pandas as pd

from panel_cleaning import (check_unique_key, drop_rows_matching, find_duplicate_keys,
                            missing_value_summary, outcome_counts)
from panel_errors import DuplicateKeyWarning, MissingColumnError
from panel_generator import (BASELINE_VALUE_LABELS, OUTCOME_COMPLETED, OUTCOME_INCOMPLETE,
                             OUTCOME_PARTIAL, SyntheticPanelGenerator)
from panel_loader import table_from_frame


class TestDropRowsMatching(unittest.TestCase):
    """Test removal of the incomplete callback interview."""

    @classmethod
    def setUpClass(cls):
        """Build the full-size baseline fixture once."""
        generator = SyntheticPanelGenerator(random_seed=42)
        baseline = generator.generate_baseline(n_records=8909, n_partial=112, n_incomplete=1)
        cls.baseline = table_from_frame(baseline, BASELINE_VALUE_LABELS, source='baseline')

    def _counts(self, table):
        counts = outcome_counts(table, 'pre_outcome')
        return dict(zip(counts['pre_outcome'], counts['n']))

    def test_fixture_counts(self):
        """Fixture matches the reference outcome distribution."""
        self.assertEqual(len(self.baseline), 8909)
        self.assertEqual(self._counts(self.baseline), {
            OUTCOME_COMPLETED: 8796,
            OUTCOME_INCOMPLETE: 1,
            OUTCOME_PARTIAL: 112,
        })

    def test_drop_by_label(self):
        """Dropping the incomplete label removes exactly one row."""
        cleaned, n_removed = drop_rows_matching(self.baseline, 'pre_outcome', [OUTCOME_INCOMPLETE])

        self.assertEqual(n_removed, 1)
        self.assertEqual(len(cleaned), 8908)
        counts = self._counts(cleaned)
        self.assertEqual(counts[OUTCOME_COMPLETED], 8796)
        self.assertEqual(counts[OUTCOME_PARTIAL], 112)
        self.assertNotIn(OUTCOME_INCOMPLETE, counts)

        # Input table is not modified
        self.assertEqual(len(self.baseline), 8909)

    def test_drop_by_code_matches_drop_by_label(self):
        by_code, _ = drop_rows_matching(self.baseline, 'pre_outcome', [3])
        by_label, _ = drop_rows_matching(self.baseline, 'pre_outcome', [OUTCOME_INCOMPLETE])
        self.assertEqual(by_code.frame['caseid'].tolist(), by_label.frame['caseid'].tolist())

    def test_idempotent(self):
        """Second application is a no-op."""
        once, _ = drop_rows_matching(self.baseline, 'pre_outcome', [OUTCOME_INCOMPLETE])
        twice, n_removed = drop_rows_matching(once, 'pre_outcome', [OUTCOME_INCOMPLETE])

        self.assertEqual(n_removed, 0)
        self.assertEqual(len(twice), len(once))

    def test_labels_survive(self):
        cleaned, _ = drop_rows_matching(self.baseline, 'pre_outcome', [OUTCOME_INCOMPLETE])
        self.assertEqual(cleaned.value_labels['pre_sex'], BASELINE_VALUE_LABELS['pre_sex'])

    def test_null_values_are_kept(self):
        table = table_from_frame(pd.DataFrame({'status': ['a', None, 'b', 'a']}))
        cleaned, n_removed = drop_rows_matching(table, 'status', ['a'])
        self.assertEqual(n_removed, 2)
        self.assertEqual(len(cleaned), 2)

    def test_missing_column(self):
        with self.assertRaises(MissingColumnError):
            drop_rows_matching(self.baseline, 'outcome', [OUTCOME_INCOMPLETE])


class TestDuplicateKeys(unittest.TestCase):
    """Test identifier uniqueness checks."""

    def setUp(self):
        self.unique = table_from_frame(pd.DataFrame({'caseid': ['a', 'b', 'c']}), source='unique')
        self.duplicated = table_from_frame(
            pd.DataFrame({'caseid': ['a', 'b', 'a', 'c', 'b', 'a']}), source='duplicated'
        )

    def test_find_duplicate_keys_is_lazy(self):
        result = find_duplicate_keys(self.duplicated, 'caseid')
        self.assertIsInstance(result, types.GeneratorType)
        self.assertEqual(list(result), ['a', 'b'])

    def test_no_duplicates(self):
        self.assertEqual(list(find_duplicate_keys(self.unique, 'caseid')), [])
        with warnings.catch_warnings():
            warnings.simplefilter('error', DuplicateKeyWarning)
            self.assertEqual(check_unique_key(self.unique, 'caseid'), [])

    def test_duplicates_warn(self):
        with self.assertWarns(DuplicateKeyWarning):
            duplicates = check_unique_key(self.duplicated, 'caseid')
        self.assertEqual(duplicates, ['a', 'b'])

    def test_repeated_missing_keys_are_duplicates(self):
        table = table_from_frame(pd.DataFrame({'caseid': [np.nan, np.nan, 1.0]}))
        duplicates = list(find_duplicate_keys(table, 'caseid'))

        self.assertEqual(len(duplicates), 1)
        self.assertTrue(np.isnan(duplicates[0]))
        with self.assertWarns(DuplicateKeyWarning):
            check_unique_key(table, 'caseid')

    def test_single_missing_key_is_not_a_duplicate(self):
        table = table_from_frame(pd.DataFrame({'caseid': [np.nan, 2.0, 1.0]}))
        self.assertEqual(list(find_duplicate_keys(table, 'caseid')), [])


class TestMissingValueSummary(unittest.TestCase):

    def test_counts_and_percentages(self):
        table = table_from_frame(pd.DataFrame({
            'caseid': ['a', 'b', 'c', 'd'],
            'pre_age': [30, np.nan, 40, np.nan],
        }))
        summary = missing_value_summary(table).set_index('Variable')

        self.assertEqual(summary.loc['caseid', 'N_Missing'], 0)
        self.assertEqual(summary.loc['pre_age', 'N_Missing'], 2)
        self.assertAlmostEqual(summary.loc['pre_age', 'Pct_Missing'], 50.0)
        self.assertEqual(summary.loc['pre_age', 'N_Total'], 4)


if __name__ == '__main__':
    unittest.main(verbosity=2)
