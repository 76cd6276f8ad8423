"""
Cleaning Utilities for Survey Panel Tables

Row exclusion by category, identifier uniqueness checks and missing-value
audits. Every check that the exploratory workflow used to do by eye
(unique(), View()) is a machine-checked function here.

Author: Survey Analytics Team
Date: 2025
"""

import warnings
from typing import Any, Iterable, Iterator, List, Tuple

import pandas as pd

from panel_errors import DuplicateKeyWarning
from panel_loader import SurveyTable
from scripts.logging_config import get_logger

logger = get_logger('cleaning')


def drop_rows_matching(table: SurveyTable, column: str,
                       excluded_values: Iterable[Any]) -> Tuple[SurveyTable, int]:
    """
    Remove rows whose value in `column` is one of `excluded_values`.

    A value matches on its raw code or, for labelled columns, on its label,
    so both ``3`` and ``"Incomplete (callback)"`` select the same rows.
    Null cells never match. Re-applying the same exclusion removes nothing.

    Parameters:
    -----------
    table : SurveyTable
        Input table (left untouched)
    column : str
        Column to test
    excluded_values : iterable
        Codes and/or labels to drop

    Returns:
    --------
    Tuple[SurveyTable, int]
        New table without the matching rows, and the number of rows removed
    """
    table.require_columns(column)
    excluded = list(excluded_values)

    raw = table.frame[column]
    mask = raw.isin(excluded)
    if table.is_labelled(column):
        mask = mask | table.decode(column).isin(excluded)
    mask = mask & raw.notna()

    n_removed = int(mask.sum())
    cleaned = table.replace(table.frame.loc[~mask].reset_index(drop=True))

    logger.info(f"Dropped {n_removed} row(s) where {column} in {excluded}; "
                f"{len(cleaned):,} rows remain")
    return cleaned, n_removed


def find_duplicate_keys(table: SurveyTable, key_column: str) -> Iterator[Any]:
    """
    Lazily yield each key value that occurs more than once.

    Every duplicated value is yielded once, in order of first appearance.
    Repeated missing identifiers count as duplicates of each other.
    An empty sequence means the key is unique.
    """
    table.require_columns(key_column)
    keys = table.frame[key_column]
    yield from keys[keys.duplicated(keep=False)].drop_duplicates()


def check_unique_key(table: SurveyTable, key_column: str, context: str = '') -> List[Any]:
    """
    Verify the identifier invariant and warn if it does not hold.

    Returns:
    --------
    list
        Duplicated key values (empty when the key is unique)
    """
    duplicates = list(find_duplicate_keys(table, key_column))
    name = context or table.source or 'table'
    if duplicates:
        preview = duplicates[:10]
        message = (f"{len(duplicates)} duplicated value(s) of '{key_column}' in {name}; "
                   f"joins on this key will fan out. First: {preview}")
        logger.warning(message)
        warnings.warn(message, DuplicateKeyWarning, stacklevel=2)
    else:
        logger.info(f"No duplicates in '{key_column}' for {name}")
    return duplicates


def outcome_counts(table: SurveyTable, column: str) -> pd.DataFrame:
    """
    Count rows per category of `column`, labelled where labels exist.

    Returns a DataFrame with columns [column, 'n'] sorted by category.
    """
    table.require_columns(column)
    decoded = table.decode(column)
    counts = decoded.value_counts(dropna=False).sort_index(key=lambda idx: idx.astype(str))
    return counts.rename_axis(column).reset_index(name='n')


def missing_value_summary(table: SurveyTable) -> pd.DataFrame:
    """Per-column count and share of missing values."""
    n_total = len(table)
    missing_stats = []
    for col in table.columns:
        n_missing = int(table.frame[col].isnull().sum())
        missing_stats.append({
            'Variable': col,
            'N_Missing': n_missing,
            'N_Total': n_total,
            'Pct_Missing': (n_missing / n_total) * 100 if n_total else 0.0,
        })
    return pd.DataFrame(missing_stats, columns=['Variable', 'N_Missing', 'N_Total', 'Pct_Missing'])
