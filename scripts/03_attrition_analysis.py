#!/usr/bin/env python3
"""
Cyclone Panel Attrition Analysis - Step 3: Attrition Between Waves

Purpose: Find which baseline characteristics are associated with being
         reinterviewed after the cyclone
Author: Survey Analytics Team
Date: 2025

This script performs:
- Follow-up completion check (start, end and submission timestamps)
- Left join of the cleaned baseline onto the follow-up wave
- Reinterview flag and age group derivation
- Contingency tables, chi-square tests and bar charts per demographic
- Export of the merged panel
"""

import sys
from pathlib import Path

# Project root, for running the stage directly as a script
sys.path.append(str(Path(__file__).parent.parent))

from config.config import load_config
from panel_cleaning import outcome_counts
from panel_reporting import export_table, plot_group_percentages, print_section
from panel_pipeline import run_attrition_pipeline


def main(config_path=None):
    """Main execution function"""
    config = load_config(config_path)
    logger = config.setup_logging()
    config.create_directories()
    flags = config.get_flags_config()
    output_dir = Path(config.paths.output)
    viz_dir = Path(config.paths.visualizations)

    print("=" * 80)
    print("CYCLONE PANEL - ATTRITION ANALYSIS")
    print("=" * 80)

    try:
        results = run_attrition_pipeline(config.sources.baseline_file,
                                         config.sources.followup_file, config)
        baseline = results['baseline']
        followup = results['followup']
        attrition = results['attrition']

        print_section("1. Follow-up completion")
        print(outcome_counts(followup, flags['completion_column']).to_string(index=False))

        print_section("2. Joining the waves")
        print(f"Baseline after cleaning: {len(baseline.table):,}")
        print(f"Follow-up interviews: {len(followup):,}")
        print(f"Respondents in both waves (inner join): {attrition.n_both_waves:,}")
        print(f"Follow-up identifiers missing from baseline: {len(attrition.orphan_keys)}")
        print(f"Merged panel (left join): {len(attrition.merged):,}")
        print(attrition.reinterview_counts.to_string(index=False))

        print_section("3. Reinterview by demographic")
        for col, percentages in attrition.percentages.items():
            print(f"\n{col}:")
            print(attrition.crosstabs[col].to_string())
            print(percentages.round(2).to_string())
            plot_group_percentages(percentages, f'Reinterview Status by {col}',
                                   viz_dir / f'reinterview_by_{col}.png')

        print_section("4. Chi-square tests")
        print(attrition.chi_square.to_string(index=False))

        export_table(attrition.chi_square, output_dir / 'attrition_chi_square.csv')
        export_table(attrition.merged, Path(config.paths.processed_data) / 'merged_panel.csv')

        significant = attrition.chi_square.loc[attrition.chi_square['Significant'], 'Variable'].tolist()
        print("\n" + "=" * 80)
        print("ATTRITION ANALYSIS COMPLETED")
        print("=" * 80)
        print(f"• Factors associated with reinterview (alpha={config.analysis.alpha}): "
              f"{', '.join(significant) if significant else 'none'}")

        return results

    except Exception as e:
        logger.error(f"Attrition analysis failed: {e}")
        import traceback
        traceback.print_exc()
        return None


if __name__ == "__main__":
    results = main()
