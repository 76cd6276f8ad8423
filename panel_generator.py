"""
Synthetic Cyclone Panel Generator

This module generates a reproducible synthetic version of the household
survey panel: a pre-cyclone baseline wave and a post-cyclone follow-up wave
keyed on the same respondent identifier, written as labelled Stata files.

The defaults reproduce the reference sizes of the real panel:
8,909 baseline respondents (8,796 completed, 112 partially complete,
1 incomplete callback) and 5,218 follow-up interviews.

Author: Survey Analytics Team
Date: 2025
"""

from pathlib import Path
from typing import Dict, Optional, Tuple, Union

import numpy as np
import pandas as pd

from panel_flags import TIMESTAMP_FIELDS
from scripts.logging_config import get_logger

logger = get_logger('generator')

OUTCOME_COMPLETED = 'Completed interview'
OUTCOME_PARTIAL = 'Partially complete (no callback)'
OUTCOME_INCOMPLETE = 'Incomplete (callback)'

BASELINE_VALUE_LABELS = {
    'pre_outcome': {1: OUTCOME_COMPLETED, 2: OUTCOME_PARTIAL, 3: OUTCOME_INCOMPLETE},
    'pre_sex': {1: 'Male', 2: 'Female'},
    'pre_Electricity': {0: 'No', 1: 'Yes'},
    'pre_water_source': {1: 'Piped water', 2: 'Tube well', 3: 'Pond/river', 4: 'Other'},
    'pre_urban_rural': {1: 'Urban', 2: 'Rural'},
    'pre_hh_size': {1: '1-3 members', 2: '4-6 members', 3: '7+ members'},
}

BASELINE_VARIABLE_LABELS = {
    'caseid': 'Respondent identifier',
    'pre_outcome': 'Interview outcome (baseline)',
    'pre_sex': 'Sex of respondent',
    'pre_age': 'Age of respondent (years)',
    'pre_Electricity': 'Household has electricity',
    'pre_water_source': 'Main drinking water source',
    'pre_urban_rural': 'Urban or rural locality',
    'pre_hh_size': 'Household size group',
    'pre_WR': 'Respondent sampling weight',
    'pre_WT': 'Household sampling weight',
}

FOLLOWUP_VALUE_LABELS = {
    'post_house_damage': {0: 'No damage', 1: 'Partially damaged', 2: 'Fully destroyed'},
    'post_displaced': {0: 'No', 1: 'Yes'},
    'post_income_loss': {0: 'No', 1: 'Yes'},
    'post_relief_received': {0: 'No', 1: 'Yes'},
}

FOLLOWUP_VARIABLE_LABELS = {
    'caseid': 'Respondent identifier',
    'starttime': 'Interview start time',
    'endtime': 'Interview end time',
    'submissiondate': 'Form submission time',
    'post_house_damage': 'Damage to dwelling from the cyclone',
    'post_displaced': 'Household displaced after the cyclone',
    'post_income_loss': 'Household lost income after the cyclone',
    'post_relief_received': 'Household received relief',
}


class SyntheticPanelGenerator:
    """
    Generate a two-wave household survey panel.

    Attrition between waves is made to depend on locality and age, so the
    association tests of the attrition analysis have something to find.
    """

    def __init__(self, random_seed: Optional[int] = 12345):
        """
        Initialize the panel generator.

        Parameters:
        -----------
        random_seed : int, optional
            Random seed for reproducible results (default: 12345)
        """
        self.random_seed = random_seed
        self.rng = np.random.RandomState(random_seed)

        self.electricity_probs = {0: 0.35, 1: 0.65}
        self.water_source_probs = {1: 0.15, 2: 0.60, 3: 0.15, 4: 0.10}
        self.urban_rural_probs = {1: 0.25, 2: 0.75}
        self.hh_size_probs = {1: 0.30, 2: 0.50, 3: 0.20}

        # Share of women among partially completed interviews in the real panel
        self.partial_female_share = 0.786

        self.followup_start = pd.Timestamp('2021-06-15 08:00:00')

    def _sample(self, probs: Dict[int, float], n_samples: int) -> np.ndarray:
        codes = np.array(list(probs.keys()))
        weights = np.array(list(probs.values()), dtype=float)
        return self.rng.choice(codes, size=n_samples, p=weights / weights.sum())

    def _generate_ages(self, n_samples: int) -> np.ndarray:
        """Adult ages (18-90), roughly normal around 40."""
        ages = self.rng.normal(40, 14, n_samples)
        return np.clip(ages, 18, 90).round().astype('int16')

    def generate_baseline(self, n_records: int = 8909, n_partial: int = 112,
                          n_incomplete: int = 1) -> pd.DataFrame:
        """
        Generate the pre-cyclone baseline wave.

        Parameters:
        -----------
        n_records : int
            Total number of respondents
        n_partial : int
            Number of 'Partially complete (no callback)' outcomes
        n_incomplete : int
            Number of 'Incomplete (callback)' outcomes

        Returns:
        --------
        pd.DataFrame
            Baseline records with integer-coded categorical columns
        """
        if n_partial + n_incomplete > n_records:
            raise ValueError("More partial/incomplete outcomes than records requested")

        outcome = np.ones(n_records, dtype='int16')
        order = self.rng.permutation(n_records)
        outcome[order[:n_incomplete]] = 3
        outcome[order[n_incomplete:n_incomplete + n_partial]] = 2

        female_share = np.where(outcome == 2, self.partial_female_share, 0.5)
        sex = np.where(self.rng.uniform(size=n_records) < female_share, 2, 1).astype('int16')

        weights_r = self.rng.lognormal(mean=0.0, sigma=0.25, size=n_records)
        weights_t = weights_r * self.rng.uniform(0.9, 1.1, size=n_records)

        baseline = pd.DataFrame({
            'caseid': [f'HH{i:06d}' for i in range(1, n_records + 1)],
            'pre_outcome': outcome,
            'pre_sex': sex,
            'pre_age': self._generate_ages(n_records),
            'pre_Electricity': self._sample(self.electricity_probs, n_records).astype('int16'),
            'pre_water_source': self._sample(self.water_source_probs, n_records).astype('int16'),
            'pre_urban_rural': self._sample(self.urban_rural_probs, n_records).astype('int16'),
            'pre_hh_size': self._sample(self.hh_size_probs, n_records).astype('int16'),
            'pre_WR': weights_r / weights_r.mean(),
            'pre_WT': weights_t / weights_t.mean(),
        })

        logger.info(f"Generated baseline wave: {len(baseline):,} respondents")
        return baseline

    def generate_followup(self, baseline: pd.DataFrame, n_records: int = 5218,
                          missing_timestamp_rate: float = 0.0) -> pd.DataFrame:
        """
        Generate the post-cyclone follow-up wave for a subset of the baseline.

        Only respondents whose baseline outcome is not 'Incomplete (callback)'
        can be reinterviewed. Rural and older respondents are easier to reach.

        Parameters:
        -----------
        baseline : pd.DataFrame
            Output of generate_baseline
        n_records : int
            Number of follow-up interviews
        missing_timestamp_rate : float
            Share of interviews whose submission time is missing

        Returns:
        --------
        pd.DataFrame
            Follow-up records keyed on caseid
        """
        eligible = baseline[baseline['pre_outcome'] != 3]
        if n_records > len(eligible):
            raise ValueError(f"Cannot draw {n_records} follow-ups from {len(eligible)} eligible respondents")

        weights = np.where(eligible['pre_urban_rural'] == 2, 1.4, 1.0)
        weights = weights * (1 + (eligible['pre_age'].to_numpy() - 18) / 100)
        chosen = self.rng.choice(eligible.index.to_numpy(), size=n_records, replace=False,
                                 p=weights / weights.sum())
        chosen = np.sort(chosen)

        start_offsets = pd.to_timedelta(self.rng.randint(0, 60 * 24 * 45, n_records), unit='min')
        starttime = self.followup_start + start_offsets
        endtime = starttime + pd.to_timedelta(self.rng.randint(25, 95, n_records), unit='min')
        submissiondate = endtime + pd.to_timedelta(self.rng.randint(5, 60 * 48, n_records), unit='min')

        followup = pd.DataFrame({
            'caseid': baseline.loc[chosen, 'caseid'].to_numpy(),
            'starttime': starttime,
            'endtime': endtime,
            'submissiondate': submissiondate,
            'post_house_damage': self._sample({0: 0.45, 1: 0.40, 2: 0.15}, n_records).astype('int16'),
            'post_displaced': self._sample({0: 0.80, 1: 0.20}, n_records).astype('int16'),
            'post_income_loss': self._sample({0: 0.40, 1: 0.60}, n_records).astype('int16'),
            'post_relief_received': self._sample({0: 0.55, 1: 0.45}, n_records).astype('int16'),
        })

        if missing_timestamp_rate > 0:
            missing = self.rng.uniform(size=n_records) < missing_timestamp_rate
            followup.loc[missing, 'submissiondate'] = pd.NaT

        logger.info(f"Generated follow-up wave: {len(followup):,} interviews")
        return followup


def write_stata(frame: pd.DataFrame, path: Union[str, Path],
                value_labels: Dict[str, Dict[int, str]],
                variable_labels: Dict[str, str]) -> Path:
    """Write a frame as a labelled Stata file."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    convert_dates = {
        col: 'tc' for col in frame.columns
        if pd.api.types.is_datetime64_any_dtype(frame[col])
    }
    frame.to_stata(
        path,
        write_index=False,
        version=118,
        convert_dates=convert_dates,
        value_labels={col: labels for col, labels in value_labels.items() if col in frame.columns},
        variable_labels={col: text for col, text in variable_labels.items() if col in frame.columns},
    )
    logger.info(f"Wrote {len(frame):,} rows to {path}")
    return path


def generate_sample_panel(output_dir: Union[str, Path],
                          baseline_name: str = 'pre_cyclone_baseline.dta',
                          followup_name: str = 'post_cyclone_followup.dta',
                          random_seed: int = 12345,
                          n_baseline: int = 8909, n_partial: int = 112,
                          n_incomplete: int = 1, n_followup: int = 5218,
                          missing_timestamp_rate: float = 0.0) -> Tuple[Path, Path]:
    """
    Convenience function to generate and write both waves.

    Returns:
    --------
    Tuple[Path, Path]
        Paths of the baseline and follow-up .dta files
    """
    output_dir = Path(output_dir)
    generator = SyntheticPanelGenerator(random_seed=random_seed)
    baseline = generator.generate_baseline(n_baseline, n_partial, n_incomplete)
    followup = generator.generate_followup(baseline, n_followup, missing_timestamp_rate)

    baseline_path = write_stata(baseline, output_dir / baseline_name,
                                BASELINE_VALUE_LABELS, BASELINE_VARIABLE_LABELS)
    followup_path = write_stata(followup, output_dir / followup_name,
                                FOLLOWUP_VALUE_LABELS, FOLLOWUP_VARIABLE_LABELS)
    return baseline_path, followup_path
