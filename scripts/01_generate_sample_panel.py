#!/usr/bin/env python3
"""
Cyclone Panel Attrition Analysis - Step 1: Sample Panel Generation

Purpose: Write a synthetic baseline and follow-up wave as labelled Stata files
Author: Survey Analytics Team
Date: 2025

The real survey files cannot be shipped with the repository. This script
produces stand-ins with the same schema and reference sizes so the rest of
the pipeline can run end to end:
- pre_cyclone_baseline.dta: 8,909 respondents
- post_cyclone_followup.dta: 5,218 reinterviews
"""

import sys
from pathlib import Path

# Project root, for running the stage directly as a script
sys.path.append(str(Path(__file__).parent.parent))

from config.config import load_config
from panel_generator import generate_sample_panel
from panel_loader import load_survey_table
from panel_cleaning import outcome_counts


def main(config_path=None):
    """Main execution function."""
    config = load_config(config_path)
    logger = config.setup_logging()
    config.create_directories()

    print("=== Cyclone Panel - Sample Data Generation ===\n")

    generation = config.get_generation_config()
    baseline_file = Path(config.sources.baseline_file)
    followup_file = Path(config.sources.followup_file)
    if baseline_file.parent != followup_file.parent:
        logger.warning("Baseline and follow-up files live in different directories; "
                       "writing both next to the baseline file")

    baseline_path, followup_path = generate_sample_panel(
        output_dir=baseline_file.parent,
        baseline_name=baseline_file.name,
        followup_name=followup_file.name,
        random_seed=generation['random_seed'],
        n_baseline=generation['n_baseline'],
        n_partial=generation['n_partial'],
        n_incomplete=generation['n_incomplete'],
        n_followup=generation['n_followup'],
        missing_timestamp_rate=generation['missing_timestamp_rate'],
    )

    # Verification checks on what was actually written
    baseline = load_survey_table(baseline_path)
    followup = load_survey_table(followup_path)
    print("\n=== Verification ===")
    print(f"✓ Baseline: {len(baseline):,} rows, {len(baseline.columns)} columns -> {baseline_path}")
    print(f"✓ Follow-up: {len(followup):,} rows, {len(followup.columns)} columns -> {followup_path}")
    print("\nBaseline outcomes:")
    print(outcome_counts(baseline, config.get('cleaning.outcome_column')).to_string(index=False))

    print("\n=== Data Generation Complete ===")
    return baseline_path, followup_path


if __name__ == "__main__":
    main()
