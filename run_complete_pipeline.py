#!/usr/bin/env python3
"""
Complete Cyclone Panel Pipeline Runner

Purpose: Executes the complete attrition analysis on the baseline and
         follow-up survey files and summarizes results to stdout.

Author: Survey Analytics Team
Date: 2025

Pipeline Stages:
1. Sample Panel Generation (only with --generate)
2. Baseline Exploration
3. Attrition Analysis

USAGE:
    python run_complete_pipeline.py [--config CONFIG] [--generate]
    cyclone-panel-pipeline [--config CONFIG] [--generate]

INPUT:
    - sources.baseline_file and sources.followup_file from the configuration

OUTPUT:
    - Pipeline execution summary to stdout
    - CSV summaries, charts and the merged panel written by each stage
"""

import argparse
import importlib
import sys
import time
import traceback
from datetime import datetime
from pathlib import Path

from config.config import load_config

STAGE_PACKAGE = 'scripts'


def import_and_run_main(script_name, *args):
    """Import a numbered stage module from the scripts package and run its main function."""
    module = importlib.import_module(f"{STAGE_PACKAGE}.{Path(script_name).stem}")

    if not hasattr(module, 'main'):
        raise AttributeError(f"Module {script_name} has no main function")
    return module.main(*args)


class PanelPipeline:
    """Complete Cyclone Panel Pipeline Orchestrator"""

    def __init__(self, config_path=None, generate=False):
        """
        Initialize pipeline from a configuration file.

        Args:
            config_path (str): Path to the YAML configuration (default: config/config.yaml)
            generate (bool): Write the synthetic sample panel before analysing it
        """
        self.config_path = config_path
        self.config = load_config(config_path)
        self.generate = generate
        self.start_time = datetime.now()
        self.stage_results = {}

        print("=" * 80)
        print("CYCLONE PANEL PIPELINE - COMPLETE EXECUTION")
        print("=" * 80)
        print(f"Pipeline Started: {self.start_time.strftime('%Y-%m-%d %H:%M:%S')}")
        print(f"Baseline File:  {self.config.sources.baseline_file}")
        print(f"Follow-up File: {self.config.sources.followup_file}")
        print("=" * 80)

    def _check_inputs(self):
        for path in (self.config.sources.baseline_file, self.config.sources.followup_file):
            if not Path(path).exists():
                raise FileNotFoundError(f"Input file not found: {path} (run with --generate "
                                        f"to create a sample panel)")

    def _execute_stage(self, stage_name, stage_function):
        """
        Execute a pipeline stage with error handling and timing.

        Args:
            stage_name (str): Name of the pipeline stage
            stage_function (callable): Function to execute

        Returns:
            Stage execution result
        """
        print(f"\n{'=' * 20} STAGE: {stage_name.upper()} {'=' * 20}")
        stage_start = time.time()

        try:
            result = stage_function()
            if result is None:
                raise RuntimeError(f"{stage_name} returned no result")

            duration = time.time() - stage_start
            self.stage_results[stage_name] = {
                'status': 'SUCCESS',
                'duration': duration,
                'result': result
            }
            print(f"✓ {stage_name} completed successfully in {duration:.2f} seconds")
            return result

        except Exception as e:
            duration = time.time() - stage_start
            self.stage_results[stage_name] = {
                'status': 'FAILED',
                'duration': duration,
                'error': str(e),
                'traceback': traceback.format_exc()
            }
            print(f"❌ {stage_name} failed after {duration:.2f} seconds")
            print(f"Error: {str(e)}")
            raise

    def run_sample_generation(self):
        """Execute Stage 1: Sample Panel Generation"""
        return import_and_run_main('01_generate_sample_panel.py', self.config_path)

    def run_baseline_exploration(self):
        """Execute Stage 2: Baseline Exploration"""
        return import_and_run_main('02_baseline_exploration.py', self.config_path)

    def run_attrition_analysis(self):
        """Execute Stage 3: Attrition Analysis"""
        return import_and_run_main('03_attrition_analysis.py', self.config_path)

    def run_complete_pipeline(self):
        """Execute the complete pipeline."""
        try:
            if self.generate:
                self._execute_stage("Sample Generation", self.run_sample_generation)
            else:
                print(f"\n{'=' * 20} STAGE: SAMPLE GENERATION (SKIPPED) {'=' * 20}")
            self._check_inputs()

            self._execute_stage("Baseline Exploration", self.run_baseline_exploration)
            self._execute_stage("Attrition Analysis", self.run_attrition_analysis)

            self.generate_pipeline_summary()

        except Exception as e:
            print(f"\n❌ Pipeline execution failed: {str(e)}")
            self.generate_failure_summary()
            raise

    def _print_stage_table(self):
        for stage_name, stage_info in self.stage_results.items():
            status_icon = "✓" if stage_info['status'] == 'SUCCESS' else "❌"
            print(f"{status_icon} {stage_name:<22}: {stage_info['status']:<10} "
                  f"({stage_info['duration']:.2f}s)")
            if stage_info['status'] == 'FAILED':
                print(f"   Error: {stage_info['error']}")

    def generate_pipeline_summary(self):
        """Generate pipeline execution summary."""
        end_time = datetime.now()
        total_duration = (end_time - self.start_time).total_seconds()

        print(f"\n{'=' * 80}")
        print("PIPELINE EXECUTION COMPLETE - SUMMARY")
        print("=" * 80)
        print(f"• Total Execution Time: {total_duration:.2f} seconds")
        print()
        self._print_stage_table()

        exploration = self.stage_results.get('Baseline Exploration', {}).get('result')
        if exploration:
            report = exploration['report']
            print(f"\n• Baseline Exploration:")
            print(f"  - Rows removed by cleaning: {report.n_removed}")
            print(f"  - Baseline rows after cleaning: {len(report.table):,}")

        analysis = self.stage_results.get('Attrition Analysis', {}).get('result')
        if analysis:
            attrition = analysis['attrition']
            chi_square = attrition.chi_square
            print(f"\n• Attrition Analysis:")
            print(f"  - Merged panel rows: {len(attrition.merged):,}")
            print(f"  - Respondents in both waves: {attrition.n_both_waves:,}")
            print(f"  - Significant factors: {int(chi_square['Significant'].sum())} "
                  f"of {len(chi_square)}")

        viz_dir = Path(self.config.paths.visualizations)
        if viz_dir.exists():
            viz_files = sorted(viz_dir.glob('*.png'))
            print(f"\n• Visualization files: {len(viz_files)}")
            for viz_file in viz_files:
                print(f"  ✓ {viz_file.name}")

    def generate_failure_summary(self):
        """Generate summary when pipeline fails."""
        total_duration = (datetime.now() - self.start_time).total_seconds()

        print(f"\n{'=' * 80}")
        print("PIPELINE EXECUTION FAILED - SUMMARY")
        print("=" * 80)
        print(f"• Execution Time: {total_duration:.2f} seconds")
        print()
        self._print_stage_table()


def main(argv=None):
    """Main execution function."""
    parser = argparse.ArgumentParser(
        description="Run the cyclone panel attrition analysis end to end",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        '--config',
        default=None,
        help='Path to the YAML configuration (default: config/config.yaml)'
    )
    parser.add_argument(
        '--generate',
        action='store_true',
        help='Generate the synthetic sample panel before running the analysis'
    )
    args = parser.parse_args(argv)

    try:
        pipeline = PanelPipeline(args.config, generate=args.generate)
        pipeline.run_complete_pipeline()
        return 0

    except Exception as e:
        print(f"\n❌ Pipeline execution failed: {str(e)}")
        traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
