"""
Panel Pipeline Stages

Explicit composition of the attrition analysis: each stage takes the
previous stage's table as an argument and returns a new one. No stage
reads or writes shared state; configuration values are passed in.

    baseline --clean_baseline--> cleaned baseline --\
                                                     left_join --> merged --> flagged --> bucketed
    followup --prepare_followup--> flagged followup -/

Author: Survey Analytics Team
Date: 2025
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Union

import pandas as pd

from panel_bucketing import AGE_BREAKPOINTS, AGE_LABELS, add_age_bucket
from panel_cleaning import (check_unique_key, drop_rows_matching, missing_value_summary,
                            outcome_counts)
from panel_flags import (TIMESTAMP_FIELDS, derive_completion, derive_outcome_group,
                         derive_reinterview)
from panel_join import inner_join, left_join, orphan_keys
from panel_loader import SurveyTable, load_survey_table
from panel_stats import (association_screen, crosstab, crosstab_percentages,
                         group_distribution, numeric_summary_by_group)
from scripts.logging_config import get_logger

logger = get_logger('pipeline')


@dataclass
class BaselineReport:
    """Result of cleaning the baseline wave."""
    table: SurveyTable
    counts_before: pd.DataFrame
    counts_after: pd.DataFrame
    n_removed: int
    duplicate_keys: List = field(default_factory=list)
    missing: Optional[pd.DataFrame] = None


@dataclass
class AttritionReport:
    """Tables produced by the attrition analysis of the merged panel."""
    merged: SurveyTable
    n_both_waves: int
    orphan_keys: List
    reinterview_counts: pd.DataFrame
    crosstabs: Dict[str, pd.DataFrame]
    percentages: Dict[str, pd.DataFrame]
    chi_square: pd.DataFrame


def load_panel(baseline_path: Union[str, Path],
               followup_path: Union[str, Path]) -> Dict[str, SurveyTable]:
    """Load both waves from disk."""
    return {
        'baseline': load_survey_table(baseline_path),
        'followup': load_survey_table(followup_path),
    }


def clean_baseline(baseline: SurveyTable, key: str = 'caseid',
                   outcome_column: str = 'pre_outcome',
                   excluded_outcomes: Iterable = ('Incomplete (callback)',)) -> BaselineReport:
    """
    Verify the key, audit missing values and drop excluded interview outcomes.
    """
    duplicates = check_unique_key(baseline, key, context='baseline')
    missing = missing_value_summary(baseline)
    n_missing = int(missing['N_Missing'].sum())
    if n_missing:
        logger.warning(f"Baseline contains {n_missing:,} missing values")

    counts_before = outcome_counts(baseline, outcome_column)
    cleaned, n_removed = drop_rows_matching(baseline, outcome_column, excluded_outcomes)
    counts_after = outcome_counts(cleaned, outcome_column)

    return BaselineReport(
        table=cleaned,
        counts_before=counts_before,
        counts_after=counts_after,
        n_removed=n_removed,
        duplicate_keys=duplicates,
        missing=missing,
    )


def compare_outcome_groups(cleaned: SurveyTable, outcome_column: str = 'pre_outcome',
                           completed_label: str = 'Completed interview',
                           sex_column: str = 'pre_sex',
                           age_column: str = 'pre_age') -> Dict[str, pd.DataFrame]:
    """
    Completed vs partially complete baseline interviews: sex distribution
    and age summary per outcome group.
    """
    grouped = derive_outcome_group(cleaned, outcome_column, completed_label)
    return {
        'sex_by_outcome': group_distribution(grouped, 'outcome_group', sex_column),
        'age_by_outcome': numeric_summary_by_group(grouped, 'outcome_group', age_column),
    }


def prepare_followup(followup: SurveyTable, key: str = 'caseid',
                     timestamp_fields: Sequence[str] = TIMESTAMP_FIELDS,
                     completion_column: str = 'interview_completed') -> SurveyTable:
    """Verify the key and derive the completion flag of the follow-up wave."""
    check_unique_key(followup, key, context='follow-up')
    return derive_completion(followup, timestamp_fields, column=completion_column)


def build_merged_panel(baseline: SurveyTable, followup: SurveyTable, key: str = 'caseid',
                       timestamp_fields: Sequence[str] = TIMESTAMP_FIELDS,
                       flag_column: str = 'reinterview',
                       label_column: str = 'reinterview_status',
                       age_column: str = 'pre_age',
                       bucket_column: str = 'age_group',
                       breakpoints: Sequence[float] = AGE_BREAKPOINTS,
                       labels: Sequence[str] = AGE_LABELS,
                       right_inclusive: bool = False,
                       out_of_range: str = 'missing') -> SurveyTable:
    """Left join baseline onto follow-up, then add reinterview flag and age bucket."""
    merged = left_join(baseline, followup, key)
    merged = derive_reinterview(merged, timestamp_fields, flag_column, label_column)
    return add_age_bucket(merged, age_column, breakpoints, labels, bucket_column,
                          right_inclusive=right_inclusive, out_of_range=out_of_range)


def analyse_attrition(baseline: SurveyTable, followup: SurveyTable, merged: SurveyTable,
                      factor_columns: Sequence[str], key: str = 'caseid',
                      label_column: str = 'reinterview_status',
                      alpha: float = 0.05, correction: bool = True) -> AttritionReport:
    """
    Cross-tabulate every factor against reinterview status and test independence.
    """
    both_waves = inner_join(baseline, followup, key)
    orphans = orphan_keys(baseline, followup, key)

    crosstabs, percentages = {}, {}
    for col in factor_columns:
        counts = crosstab(merged, col, label_column)
        crosstabs[col] = counts
        percentages[col] = crosstab_percentages(counts, normalize='index')

    chi_square = association_screen(merged, label_column, factor_columns,
                                    alpha=alpha, correction=correction, crosstabs=crosstabs)

    return AttritionReport(
        merged=merged,
        n_both_waves=len(both_waves),
        orphan_keys=orphans,
        reinterview_counts=outcome_counts(merged, label_column),
        crosstabs=crosstabs,
        percentages=percentages,
        chi_square=chi_square,
    )


def run_attrition_pipeline(baseline_path: Union[str, Path], followup_path: Union[str, Path],
                           config) -> Dict[str, object]:
    """
    Full pipeline driven by a ConfigManager: load, clean, flag, join, bucket, analyse.
    """
    key = config.sources.key_column
    cleaning = config.get_cleaning_config()
    flags = config.get_flags_config()
    bucketing = config.bucketing

    tables = load_panel(baseline_path, followup_path)
    baseline_report = clean_baseline(tables['baseline'], key,
                                     cleaning['outcome_column'], cleaning['excluded_outcomes'])
    followup = prepare_followup(tables['followup'], key, flags['timestamp_fields'],
                                flags['completion_column'])
    merged = build_merged_panel(
        baseline_report.table, followup, key,
        timestamp_fields=flags['timestamp_fields'],
        flag_column=flags['reinterview_flag_column'],
        label_column=flags['reinterview_label_column'],
        age_column=bucketing.age_column,
        bucket_column=bucketing.bucket_column,
        breakpoints=bucketing.breakpoints,
        labels=bucketing.labels,
        right_inclusive=bucketing.right_inclusive,
        out_of_range=bucketing.out_of_range,
    )
    attrition = analyse_attrition(
        baseline_report.table, followup, merged,
        factor_columns=config.analysis.demographic_columns,
        key=key,
        label_column=flags['reinterview_label_column'],
        alpha=config.analysis.alpha,
        correction=config.analysis.yates_correction,
    )
    return {
        'baseline': baseline_report,
        'followup': followup,
        'attrition': attrition,
    }
