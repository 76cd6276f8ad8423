"""
Relational Joins Between Survey Waves

Inner and left joins of two SurveyTables on a shared identifier. Both check
the uniqueness of the key on each side first, so a fan-out never goes
unnoticed, and both carry the value/variable labels of the two inputs into
the result.

Author: Survey Analytics Team
Date: 2025
"""

from typing import Dict, List, Tuple

import pandas as pd

from panel_cleaning import check_unique_key
from panel_loader import SurveyTable
from scripts.logging_config import get_logger

logger = get_logger('join')


def _renamed(columns, overlapping, key, suffix) -> Dict[str, str]:
    return {
        col: (col + suffix if col in overlapping and col != key else col)
        for col in columns
    }


def _merge_labels(a: SurveyTable, b: SurveyTable, key: str,
                  suffixes: Tuple[str, str]) -> Tuple[dict, dict]:
    overlapping = (set(a.columns) & set(b.columns)) - {key}
    names_a = _renamed(a.columns, overlapping, key, suffixes[0])
    names_b = _renamed(b.columns, overlapping, key, suffixes[1])

    value_labels, variable_labels = {}, {}
    # Right side first so the left table wins on the shared key
    for table, names in ((b, names_b), (a, names_a)):
        for col, mapping in table.value_labels.items():
            value_labels[names[col]] = dict(mapping)
        for col, text in table.variable_labels.items():
            variable_labels[names[col]] = text
    return value_labels, variable_labels


def _join(a: SurveyTable, b: SurveyTable, key: str, how: str,
          suffixes: Tuple[str, str]) -> SurveyTable:
    a.require_columns(key)
    b.require_columns(key)

    check_unique_key(a, key, context=f"left side of {how} join")
    check_unique_key(b, key, context=f"right side of {how} join")

    logger.info(f"{how.capitalize()} join on '{key}': {len(a):,} x {len(b):,} rows")
    frame = pd.merge(a.frame, b.frame, on=key, how=how, suffixes=suffixes, sort=False)
    frame = frame.reset_index(drop=True)
    logger.info(f"{how.capitalize()} join produced {len(frame):,} rows, {frame.shape[1]} columns")

    value_labels, variable_labels = _merge_labels(a, b, key, suffixes)
    return SurveyTable(
        frame=frame,
        value_labels={col: m for col, m in value_labels.items() if col in frame.columns},
        variable_labels={col: t for col, t in variable_labels.items() if col in frame.columns},
        source=f"{how}_join({a.source or 'left'}, {b.source or 'right'})",
    )


def inner_join(a: SurveyTable, b: SurveyTable, key: str,
               suffixes: Tuple[str, str] = ('_x', '_y')) -> SurveyTable:
    """
    Rows whose key exists in both tables.

    Under unique keys the result has at most min(len(a), len(b)) rows.

    Raises:
    -------
    MissingColumnError
        If `key` is absent from either table
    """
    return _join(a, b, key, 'inner', suffixes)


def left_join(a: SurveyTable, b: SurveyTable, key: str,
              suffixes: Tuple[str, str] = ('_x', '_y')) -> SurveyTable:
    """
    One row per row of `a`; columns of `b` are null where the key is absent in `b`.

    Under unique keys the result has exactly len(a) rows.

    Raises:
    -------
    MissingColumnError
        If `key` is absent from either table
    """
    return _join(a, b, key, 'left', suffixes)


def orphan_keys(a: SurveyTable, b: SurveyTable, key: str) -> List:
    """Keys of `b` that do not occur in `a` (should be empty for a follow-up of `a`)."""
    a.require_columns(key)
    b.require_columns(key)
    orphans = b.frame.loc[~b.frame[key].isin(a.frame[key]), key].dropna().unique().tolist()
    if orphans:
        logger.warning(f"{len(orphans)} key(s) of '{key}' in {b.source or 'right table'} "
                       f"have no match in {a.source or 'left table'}")
    return orphans
