#!/usr/bin/env python3
"""
Cyclone Panel Attrition Analysis - Step 2: Baseline Exploration

Purpose: Check and clean the pre-cyclone baseline wave
Author: Survey Analytics Team
Date: 2025

This script performs:
- Identifier uniqueness check and missing-value audit
- Interview outcome counts before and after dropping the incomplete callback
- Completed vs partially complete comparison (sex distribution, age summary)
- Chi-square tests of each demographic against the outcome group
"""

import sys
from pathlib import Path

# Project root, for running the stage directly as a script
sys.path.append(str(Path(__file__).parent.parent))

from config.config import load_config
from panel_flags import derive_outcome_group
from panel_loader import load_survey_table
from panel_pipeline import clean_baseline, compare_outcome_groups
from panel_reporting import export_table, plot_group_percentages, print_section
from panel_stats import association_screen, crosstab, crosstab_percentages


def main(config_path=None):
    """Main execution function"""
    config = load_config(config_path)
    logger = config.setup_logging()
    config.create_directories()
    cleaning = config.get_cleaning_config()
    output_dir = Path(config.paths.output)
    viz_dir = Path(config.paths.visualizations)

    print("=" * 80)
    print("CYCLONE PANEL - BASELINE EXPLORATION")
    print("=" * 80)

    try:
        baseline = load_survey_table(config.sources.baseline_file)

        print_section("1. Data quality")
        report = clean_baseline(baseline, config.sources.key_column,
                                cleaning['outcome_column'], cleaning['excluded_outcomes'])
        print(f"Duplicated identifiers: {len(report.duplicate_keys)}")
        print(report.missing.to_string(index=False))

        print_section("2. Interview outcomes")
        print("Before cleaning:")
        print(report.counts_before.to_string(index=False))
        print(f"\nRemoved {report.n_removed} row(s). After cleaning:")
        print(report.counts_after.to_string(index=False))

        print_section("3. Completed vs partially complete")
        comparison = compare_outcome_groups(report.table, cleaning['outcome_column'],
                                            cleaning['completed_label'])
        print(comparison['sex_by_outcome'].round(2).to_string(index=False))
        print()
        print(comparison['age_by_outcome'].round(2).to_string(index=False))

        print_section("4. Association with outcome group")
        grouped = derive_outcome_group(report.table, cleaning['outcome_column'],
                                       cleaning['completed_label'])
        factors = [col for col in config.analysis.demographic_columns if col in grouped.columns]
        chi_square = association_screen(grouped, 'outcome_group', factors,
                                        alpha=config.analysis.alpha,
                                        correction=config.analysis.yates_correction)
        print(chi_square.to_string(index=False))

        sex_pct = crosstab_percentages(crosstab(grouped, 'outcome_group', 'pre_sex'))
        plot_group_percentages(sex_pct, 'Sex by Baseline Interview Outcome',
                               viz_dir / 'sex_by_outcome_group.png')

        export_table(report.counts_after, output_dir / 'baseline_outcome_counts.csv')
        export_table(comparison['sex_by_outcome'], output_dir / 'baseline_sex_by_outcome.csv')
        export_table(comparison['age_by_outcome'], output_dir / 'baseline_age_by_outcome.csv')
        export_table(chi_square, output_dir / 'baseline_outcome_chi_square.csv')
        export_table(report.table, Path(config.paths.processed_data) / 'baseline_clean.csv')

        print("\n" + "=" * 80)
        print("BASELINE EXPLORATION COMPLETED")
        print("=" * 80)
        print(f"• Records after cleaning: {len(report.table):,}")
        print(f"• Outputs written to: {output_dir}")

        return {
            'report': report,
            'comparison': comparison,
            'chi_square': chi_square,
        }

    except Exception as e:
        logger.error(f"Baseline exploration failed: {e}")
        import traceback
        traceback.print_exc()
        return None


if __name__ == "__main__":
    results = main()
