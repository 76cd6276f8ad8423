"""
Survey Table Loader
===================

Reads tagged statistical tables (Stata .dta) into memory while keeping the
per-column value labels, so categorical columns can be interpreted without
losing their numeric encoding.

Key Features:
- One-shot file acquisition: the file is read fully and closed before parsing
- Integer codes stay in the frame; code -> label dictionaries travel with it
- Tagged LabelledValue access for label-carrying columns
- Serialization-ready export frame with labels decoded

Author: Survey Analytics Team
Date: 2025
"""

import io
import struct
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, NamedTuple, Optional, Union

import pandas as pd

from panel_errors import FormatError, MissingColumnError
from scripts.logging_config import get_logger

logger = get_logger('loader')

SUPPORTED_SUFFIXES = {'.dta'}


class LabelledValue(NamedTuple):
    """A single cell of a label-carrying column."""
    code: int
    label: str


@dataclass(frozen=True, eq=False)
class SurveyTable:
    """
    Immutable survey table: a DataFrame of raw values plus its label metadata.

    Parameters:
    -----------
    frame : pd.DataFrame
        Raw values; categorical columns hold integer codes
    value_labels : dict
        Column name -> {code: label}
    variable_labels : dict
        Column name -> human-readable variable description
    source : str, optional
        Where the table came from (file path or stage name)
    """
    frame: pd.DataFrame
    value_labels: Dict[str, Dict[int, str]] = field(default_factory=dict)
    variable_labels: Dict[str, str] = field(default_factory=dict)
    source: Optional[str] = None

    def __len__(self) -> int:
        return len(self.frame)

    @property
    def columns(self):
        return list(self.frame.columns)

    def require_columns(self, *columns: str) -> None:
        """Raise MissingColumnError naming every column absent from the table."""
        missing = [col for col in columns if col not in self.frame.columns]
        if missing:
            raise MissingColumnError(
                f"Column(s) {missing} not found in table '{self.source or 'unnamed'}'"
            )

    def replace(self, frame: pd.DataFrame, source: Optional[str] = None) -> 'SurveyTable':
        """Return a new table over `frame`, keeping labels of surviving columns."""
        keep = set(frame.columns)
        return SurveyTable(
            frame=frame,
            value_labels={col: dict(labels) for col, labels in self.value_labels.items() if col in keep},
            variable_labels={col: text for col, text in self.variable_labels.items() if col in keep},
            source=source if source is not None else self.source,
        )

    def with_value_labels(self, column: str, mapping: Dict[int, str]) -> 'SurveyTable':
        """Return a new table with `mapping` registered as the labels of `column`."""
        self.require_columns(column)
        value_labels = {col: dict(labels) for col, labels in self.value_labels.items()}
        value_labels[column] = {int(code): str(label) for code, label in mapping.items()}
        return SurveyTable(self.frame, value_labels, dict(self.variable_labels), self.source)

    def is_labelled(self, column: str) -> bool:
        return column in self.value_labels

    def label_for(self, column: str, code: Any) -> Optional[str]:
        """Label attached to `code` in `column`, or None when there is none."""
        if pd.isna(code):
            return None
        labels = self.value_labels.get(column, {})
        try:
            if code != int(code):
                return None
            return labels.get(int(code))
        except (TypeError, ValueError):
            return None

    def decode(self, column: str) -> pd.Series:
        """
        Human-readable view of a column.

        Labelled codes are replaced by their labels; codes without a label
        and unlabelled columns pass through unchanged.
        """
        self.require_columns(column)
        series = self.frame[column]
        if not self.is_labelled(column):
            return series.copy()

        def _decode(value):
            label = self.label_for(column, value)
            if label is not None:
                return label
            return value

        return series.map(_decode).rename(column)

    def labelled_values(self, column: str) -> pd.Series:
        """Series of LabelledValue(code, label); nulls stay null."""
        self.require_columns(column)
        if not self.is_labelled(column):
            raise MissingColumnError(f"Column '{column}' carries no value labels")

        def _tag(value):
            if pd.isna(value):
                return None
            label = self.label_for(column, value)
            return LabelledValue(int(value), label if label is not None else str(int(value)))

        return self.frame[column].map(_tag).rename(column)

    def to_export_frame(self, use_labels: bool = True) -> pd.DataFrame:
        """Copy of the frame ready for CSV export, with labels decoded when asked."""
        export = self.frame.copy()
        if use_labels:
            for column in self.value_labels:
                if column in export.columns:
                    export[column] = self.decode(column)
        return export


def _suffix_check(path: Path) -> None:
    if path.suffix.lower() not in SUPPORTED_SUFFIXES:
        raise FormatError(f"Unsupported file type: {path.suffix or '(none)'} ({path})")


def _pair_value_labels(columns, label_set_names,
                       label_sets: Dict[str, Dict[Any, str]]) -> Dict[str, Dict[int, str]]:
    """
    Rebuild column -> {code: label} maps.

    Stata stores label sets by name, and the set attached to a variable does
    not have to share its name. `label_set_names` gives the attached set per
    column ('' when none); a set named after the column is used otherwise.
    Several codes may share one label.
    """
    attached = dict(zip(columns, label_set_names))
    value_labels = {}
    for column in columns:
        name = attached.get(column) or column
        if name in label_sets:
            value_labels[column] = {int(code): str(label) for code, label in label_sets[name].items()}
    return value_labels


def load_survey_table(path: Union[str, Path]) -> SurveyTable:
    """
    Load a Stata .dta file into a SurveyTable.

    Parameters:
    -----------
    path : str or Path
        Location of the .dta file

    Returns:
    --------
    SurveyTable
        Table with integer codes in the frame and value labels attached

    Raises:
    -------
    FileNotFoundError
        If the file does not exist
    FormatError
        If the file cannot be parsed into a rectangular table with named columns
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Data file not found: {path}")
    _suffix_check(path)

    logger.info(f"Loading survey table from: {path}")
    with open(path, 'rb') as handle:
        payload = handle.read()

    try:
        with pd.read_stata(io.BytesIO(payload), convert_categoricals=False,
                           iterator=True) as reader:
            codes = reader.read()
            label_sets = reader.value_labels()
            variable_labels = reader.variable_labels()
            # Per-variable label set names, in column order
            label_set_names = list(getattr(reader, '_lbllist', []))
    except (ValueError, struct.error, EOFError, IndexError) as e:
        logger.error(f"Could not parse {path}: {e}")
        raise FormatError(f"Could not parse {path}: {e}") from e

    if codes.shape[1] == 0:
        raise FormatError(f"No columns found in {path}")

    value_labels = _pair_value_labels(codes.columns, label_set_names, label_sets)
    variable_labels = {col: text for col, text in variable_labels.items() if text}

    logger.info(f"Loaded {len(codes):,} rows, {codes.shape[1]} columns "
                f"({len(value_labels)} labelled) from {path.name}")
    return SurveyTable(codes, value_labels, variable_labels, source=str(path))


def table_from_frame(frame: pd.DataFrame,
                     value_labels: Optional[Dict[str, Dict[int, str]]] = None,
                     variable_labels: Optional[Dict[str, str]] = None,
                     source: Optional[str] = None) -> SurveyTable:
    """Wrap an in-memory DataFrame as a SurveyTable (fixtures, derived datasets)."""
    value_labels = {
        col: {int(code): str(label) for code, label in mapping.items()}
        for col, mapping in (value_labels or {}).items()
    }
    return SurveyTable(frame.copy(), value_labels, dict(variable_labels or {}), source)
