"""
Fixed-Breakpoint Bucketing

Maps a continuous column onto an ordered categorical with a small, fixed set
of levels (e.g. respondent age into six age groups).

Author: Survey Analytics Team
Date: 2025
"""

from typing import Optional, Sequence

import numpy as np
import pandas as pd

from panel_errors import OutOfRangeError
from panel_loader import SurveyTable
from scripts.logging_config import get_logger

logger = get_logger('bucketing')

AGE_BREAKPOINTS = [18, 25, 35, 45, 55, 65, np.inf]
AGE_LABELS = ['18-24', '25-34', '35-44', '45-54', '55-64', '65+']
OUT_OF_RANGE_POLICIES = ('missing', 'raise')


def _validate_bins(breakpoints: Sequence[float], labels: Sequence[str]) -> None:
    if len(breakpoints) < 2:
        raise ValueError("At least two breakpoints are required")
    if any(lo >= hi for lo, hi in zip(breakpoints[:-1], breakpoints[1:])):
        raise ValueError(f"Breakpoints must be strictly increasing: {list(breakpoints)}")
    if len(labels) != len(breakpoints) - 1:
        raise ValueError(
            f"Expected {len(breakpoints) - 1} labels for {len(breakpoints)} breakpoints, "
            f"got {len(labels)}"
        )


def bucketize(values, breakpoints: Sequence[float], labels: Sequence[str],
              right_inclusive: bool = False, out_of_range: str = 'missing') -> pd.Categorical:
    """
    Assign each value to the interval it falls into.

    Intervals are [b[i], b[i+1]) by default, or (b[i], b[i+1]] when
    `right_inclusive` is True. An infinite last breakpoint gives an
    open-ended top bucket.

    Parameters:
    -----------
    values : array-like
        Numeric values; nulls stay null
    breakpoints : sequence of float
        Strictly increasing interval edges
    labels : sequence of str
        One label per interval, in order
    right_inclusive : bool, default=False
        Close intervals on the right instead of the left
    out_of_range : {'missing', 'raise'}, default='missing'
        'missing' leaves values outside every interval undefined (and logs
        how many); 'raise' raises OutOfRangeError instead

    Returns:
    --------
    pd.Categorical
        Ordered categorical with exactly len(labels) categories
    """
    if out_of_range not in OUT_OF_RANGE_POLICIES:
        raise ValueError(f"out_of_range must be one of {OUT_OF_RANGE_POLICIES}, got '{out_of_range}'")
    breakpoints = [float(b) for b in breakpoints]
    labels = list(labels)
    _validate_bins(breakpoints, labels)

    numeric = pd.to_numeric(pd.Series(values), errors='coerce')
    buckets = pd.cut(numeric, bins=breakpoints, labels=labels, right=right_inclusive,
                     ordered=True)

    undefined = numeric.notna() & pd.isna(buckets)
    n_undefined = int(undefined.sum())
    if n_undefined:
        examples = sorted(numeric[undefined].unique().tolist())[:5]
        message = (f"{n_undefined} value(s) outside [{breakpoints[0]}, {breakpoints[-1]}] "
                   f"left undefined, e.g. {examples}")
        if out_of_range == 'raise':
            raise OutOfRangeError(message)
        logger.warning(message)

    return pd.Categorical(buckets, categories=labels, ordered=True)


def add_age_bucket(table: SurveyTable, column: str,
                   breakpoints: Optional[Sequence[float]] = None,
                   labels: Optional[Sequence[str]] = None,
                   bucket_column: str = 'age_group',
                   right_inclusive: bool = False,
                   out_of_range: str = 'missing') -> SurveyTable:
    """Return a new table with `column` bucketed into `bucket_column`."""
    table.require_columns(column)
    buckets = bucketize(
        table.frame[column].to_numpy(),
        breakpoints if breakpoints is not None else AGE_BREAKPOINTS,
        labels if labels is not None else AGE_LABELS,
        right_inclusive=right_inclusive,
        out_of_range=out_of_range,
    )
    frame = table.frame.copy()
    frame[bucket_column] = buckets
    return table.replace(frame)
