"""
Contingency Tables and Significance Tests
=========================================

Cross-tabulations of two categorical columns, per-group percentage views,
chi-square tests of independence and the descriptive group summaries used
to compare respondents across outcome and reinterview groups.

Key Features:
- Count matrices with labels decoded from the table's value labels
- Row- or column-normalized percentage views
- Chi-square independence test with explicit degenerate-input checks
- Association screen of several factors against one outcome

Author: Survey Analytics Team
Date: 2025
"""

from dataclasses import dataclass
from typing import Dict, Mapping, Optional, Sequence, Union

import numpy as np
import pandas as pd
from scipy import stats

from panel_errors import DegenerateInputError
from panel_loader import SurveyTable
from scripts.logging_config import get_logger

logger = get_logger('stats')


@dataclass
class ChiSquareResult:
    """Outcome of a chi-square test of independence."""
    statistic: float
    dof: int
    p_value: float
    alpha: float
    expected: pd.DataFrame

    @property
    def significant(self) -> bool:
        return self.p_value < self.alpha

    def to_dict(self) -> Dict[str, Union[float, int, bool]]:
        return {
            'Chi_Square': self.statistic,
            'P_Value': self.p_value,
            'Degrees_of_Freedom': self.dof,
            'Significant': self.significant,
        }


def _column_view(table: SurveyTable, column: str, use_labels: bool) -> pd.Series:
    if use_labels and table.is_labelled(column):
        return table.decode(column)
    return table.frame[column]


def crosstab(table: SurveyTable, row_column: str, col_column: str,
             use_labels: bool = True) -> pd.DataFrame:
    """
    Contingency count matrix of `row_column` against `col_column`.

    Rows with a null in either column are left out. Labelled columns are
    shown by label unless `use_labels` is False.
    """
    table.require_columns(row_column, col_column)
    rows = _column_view(table, row_column, use_labels)
    cols = _column_view(table, col_column, use_labels)
    counts = pd.crosstab(rows, cols)
    # Unobserved categories of categorical columns show up as empty lines
    counts = counts.loc[counts.sum(axis=1) > 0, counts.sum(axis=0) > 0]
    counts.index.name = row_column
    counts.columns.name = col_column
    return counts


def crosstab_percentages(counts: pd.DataFrame, normalize: str = 'index') -> pd.DataFrame:
    """
    Percentage view of a count matrix.

    normalize='index' makes every row sum to 100 (distribution of the column
    variable within each row group); normalize='columns' does the same per
    column.
    """
    if normalize == 'index':
        totals = counts.sum(axis=1)
        return counts.div(totals.replace(0, np.nan), axis=0) * 100
    if normalize == 'columns':
        totals = counts.sum(axis=0)
        return counts.div(totals.replace(0, np.nan), axis=1) * 100
    raise ValueError(f"normalize must be 'index' or 'columns', got '{normalize}'")


def chi_square_independence(matrix, alpha: float = 0.05,
                            correction: bool = True) -> ChiSquareResult:
    """
    Chi-square test of independence on a contingency count matrix.

    Parameters:
    -----------
    matrix : pd.DataFrame or array-like
        Observed counts, at least 2x2
    alpha : float, default=0.05
        Significance threshold used for ChiSquareResult.significant
    correction : bool, default=True
        Apply Yates' continuity correction when dof == 1

    Returns:
    --------
    ChiSquareResult

    Raises:
    -------
    DegenerateInputError
        If the table is smaller than 2x2 or any expected count is non-positive
    ValueError
        If counts are negative or alpha is not in (0, 1)
    """
    if not 0 < alpha < 1:
        raise ValueError(f"alpha must be between 0 and 1, got {alpha}")

    observed = matrix if isinstance(matrix, pd.DataFrame) else pd.DataFrame(np.asarray(matrix))
    values = observed.to_numpy(dtype=float)
    if values.ndim != 2:
        raise ValueError("Contingency matrix must be two-dimensional")
    if np.isnan(values).any():
        raise ValueError("Contingency matrix contains missing counts")
    if (values < 0).any():
        raise ValueError("Contingency matrix contains negative counts")
    if values.shape[0] < 2 or values.shape[1] < 2:
        raise DegenerateInputError(
            f"Need at least a 2x2 table for a chi-square test, got {values.shape[0]}x{values.shape[1]}"
        )

    total = values.sum()
    row_totals = values.sum(axis=1)
    col_totals = values.sum(axis=0)
    expected = np.outer(row_totals, col_totals) / total if total > 0 else np.zeros_like(values)
    if (expected <= 0).any():
        zero_rows = [str(lbl) for lbl, t in zip(observed.index, row_totals) if t == 0]
        zero_cols = [str(lbl) for lbl, t in zip(observed.columns, col_totals) if t == 0]
        raise DegenerateInputError(
            f"Zero marginal in contingency table (empty rows: {zero_rows}, empty columns: {zero_cols})"
        )

    chi2, p_value, dof, expected = stats.chi2_contingency(values, correction=correction)
    return ChiSquareResult(
        statistic=float(chi2),
        dof=int(dof),
        p_value=float(p_value),
        alpha=alpha,
        expected=pd.DataFrame(expected, index=observed.index, columns=observed.columns),
    )


def association_screen(table: SurveyTable, outcome_column: str,
                       factor_columns: Sequence[str], alpha: float = 0.05,
                       correction: bool = True,
                       crosstabs: Optional[Mapping[str, pd.DataFrame]] = None) -> pd.DataFrame:
    """
    Chi-square test of each factor against the outcome.

    `crosstabs` may hold count matrices already built with
    `crosstab(table, factor, outcome_column)`; missing factors are tabulated here.

    Returns a DataFrame with one row per factor:
    Variable, Chi_Square, P_Value, Degrees_of_Freedom, Significant.
    """
    chi_square_results = []
    for col in factor_columns:
        counts = (crosstabs or {}).get(col)
        if counts is None:
            counts = crosstab(table, col, outcome_column)
        result = chi_square_independence(counts, alpha=alpha, correction=correction)
        logger.info(f"{col} vs {outcome_column}: chi2={result.statistic:.4f}, "
                    f"dof={result.dof}, p={result.p_value:.4g}")
        chi_square_results.append({'Variable': col, **result.to_dict()})

    return pd.DataFrame(
        chi_square_results,
        columns=['Variable', 'Chi_Square', 'P_Value', 'Degrees_of_Freedom', 'Significant'],
    )


def group_distribution(table: SurveyTable, group_column: str,
                       category_column: str) -> pd.DataFrame:
    """
    Long-form count and within-group percentage of a category per group.

    Columns: group_column, category_column, count, percentage.
    """
    counts = crosstab(table, group_column, category_column)
    percentages = crosstab_percentages(counts, normalize='index')
    long_counts = counts.stack().rename('count')
    long_pct = percentages.stack().rename('percentage')
    distribution = pd.concat([long_counts, long_pct], axis=1).reset_index()
    return distribution[distribution['count'] > 0].reset_index(drop=True)


def numeric_summary_by_group(table: SurveyTable, group_column: str,
                             value_column: str) -> pd.DataFrame:
    """Mean, median and standard deviation of a numeric column per group (nulls ignored)."""
    table.require_columns(group_column, value_column)
    groups = _column_view(table, group_column, use_labels=True)
    values = pd.to_numeric(table.frame[value_column], errors='coerce')
    summary = values.groupby(groups).agg(['count', 'mean', 'median', 'std'])
    summary.columns = ['n', f'mean_{value_column}', f'median_{value_column}', f'sd_{value_column}']
    summary.index.name = group_column
    return summary.reset_index()
