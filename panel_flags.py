"""
Derived Flags for Survey Panel Tables

Completion status of a follow-up interview, reinterview status after joining
the waves, and the completed-vs-partial outcome group of the baseline.

Note the asymmetry in how the two timestamp flags are phrased: completion
fails on ANY missing timestamp, reinterview passes only when ALL are present.
Both end up requiring every timestamp.

Author: Survey Analytics Team
Date: 2025
"""

from typing import Sequence

import numpy as np

from panel_loader import SurveyTable
from scripts.logging_config import get_logger

logger = get_logger('flags')

COMPLETED = 'Completed'
INCOMPLETE = 'Incomplete'
REINTERVIEWED = 'Reinterviewed'
NOT_REINTERVIEWED = 'Not Reinterviewed'
PARTIALLY_COMPLETE = 'Partially complete'

TIMESTAMP_FIELDS = ['starttime', 'endtime', 'submissiondate']


def derive_completion(table: SurveyTable, fields: Sequence[str],
                      column: str = 'interview_completed') -> SurveyTable:
    """
    Mark each record 'Incomplete' if any of `fields` is null, else 'Completed'.

    Parameters:
    -----------
    table : SurveyTable
        Follow-up table
    fields : sequence of str
        Timestamp columns (e.g. starttime, endtime, submissiondate)
    column : str
        Name of the derived column

    Returns:
    --------
    SurveyTable
        New table with the derived column appended
    """
    fields = list(fields)
    table.require_columns(*fields)

    any_missing = table.frame[fields].isnull().any(axis=1)
    frame = table.frame.copy()
    frame[column] = np.where(any_missing, INCOMPLETE, COMPLETED)

    n_incomplete = int(any_missing.sum())
    logger.info(f"{column}: {len(frame) - n_incomplete:,} {COMPLETED}, "
                f"{n_incomplete:,} {INCOMPLETE}")
    return table.replace(frame)


def derive_reinterview(merged: SurveyTable, right_fields: Sequence[str],
                       flag_column: str = 'reinterview',
                       label_column: str = 'reinterview_status') -> SurveyTable:
    """
    Flag respondents present in both waves after a left join.

    A record is reinterviewed (flag 1, 'Reinterviewed') when every one of
    `right_fields` is non-null, otherwise 0 / 'Not Reinterviewed'. The flag
    column is registered with value labels so it decodes to the same text.
    """
    right_fields = list(right_fields)
    merged.require_columns(*right_fields)

    all_present = merged.frame[right_fields].notnull().all(axis=1)
    frame = merged.frame.copy()
    frame[flag_column] = all_present.astype(int)
    frame[label_column] = np.where(all_present, REINTERVIEWED, NOT_REINTERVIEWED)

    n_reinterviewed = int(all_present.sum())
    logger.info(f"{flag_column}: {n_reinterviewed:,} reinterviewed, "
                f"{len(frame) - n_reinterviewed:,} not reinterviewed")
    return merged.replace(frame).with_value_labels(
        flag_column, {0: NOT_REINTERVIEWED, 1: REINTERVIEWED}
    )


def derive_outcome_group(table: SurveyTable, column: str, completed_label: str,
                         column_out: str = 'outcome_group') -> SurveyTable:
    """
    Collapse the interview outcome into 'Completed' vs 'Partially complete'.

    Matching is done on the decoded label, so labelled and plain text
    outcome columns behave the same. Null outcomes stay null.
    """
    table.require_columns(column)
    decoded = table.decode(column)

    frame = table.frame.copy()
    frame[column_out] = np.where(decoded == completed_label, COMPLETED, PARTIALLY_COMPLETE)
    frame.loc[decoded.isna(), column_out] = None
    return table.replace(frame)
