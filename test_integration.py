#!/usr/bin/env python3
"""
Integration Test Suite for the Cyclone Panel Attrition Analysis

Purpose: Run the whole pipeline on the synthetic reference panel and check
         the panel-level invariants end to end

Test Categories:
- Reference panel: cleaning, completion, left join and reinterview counts
- Attrition analysis tables and chi-square screen
- Stage scripts driven by the pipeline runner in a scratch directory

Author: Survey Analytics Team
Date: 2025
"""

import importlib
import warnings
from pathlib import Path

import pandas as pd
import pytest

from config.config import load_config
from panel_errors import DuplicateKeyWarning
from panel_flags import COMPLETED, NOT_REINTERVIEWED, REINTERVIEWED
from panel_generator import OUTCOME_COMPLETED, OUTCOME_PARTIAL, generate_sample_panel
from panel_pipeline import (build_merged_panel, clean_baseline, compare_outcome_groups,
                            load_panel, prepare_followup, run_attrition_pipeline)
import run_complete_pipeline
import scripts


@pytest.fixture(scope='module')
def panel_files(tmp_path_factory):
    """Reference-size panel written as labelled Stata files."""
    output_dir = tmp_path_factory.mktemp('raw')
    return generate_sample_panel(output_dir, random_seed=2025)


@pytest.fixture(scope='module')
def pipeline_results(panel_files):
    with warnings.catch_warnings():
        warnings.simplefilter('error', DuplicateKeyWarning)
        return run_attrition_pipeline(panel_files[0], panel_files[1], load_config())


class TestReferencePanel:

    def test_cleaning_drops_single_callback(self, pipeline_results):
        report = pipeline_results['baseline']
        counts = dict(zip(report.counts_after['pre_outcome'], report.counts_after['n']))

        assert report.n_removed == 1
        assert len(report.table) == 8908
        assert counts == {OUTCOME_COMPLETED: 8796, OUTCOME_PARTIAL: 112}
        assert report.duplicate_keys == []
        assert report.missing['N_Missing'].sum() == 0

    def test_followup_all_completed(self, pipeline_results):
        followup = pipeline_results['followup']
        assert len(followup) == 5218
        assert (followup.frame['interview_completed'] == COMPLETED).all()

    def test_left_join_reinterview_counts(self, pipeline_results):
        attrition = pipeline_results['attrition']
        merged = attrition.merged

        assert len(merged) == 8908
        assert int(merged.frame['reinterview'].sum()) == 5218
        assert int((merged.frame['reinterview'] == 0).sum()) == 3690
        status = merged.frame['reinterview_status'].value_counts()
        assert status[REINTERVIEWED] == 5218
        assert status[NOT_REINTERVIEWED] == 3690

    def test_inner_join_and_orphans(self, pipeline_results):
        attrition = pipeline_results['attrition']
        assert attrition.n_both_waves == 5218
        assert attrition.orphan_keys == []

    def test_age_groups(self, pipeline_results):
        merged = pipeline_results['attrition'].merged
        age_group = merged.frame['age_group']

        assert age_group.cat.ordered
        assert len(age_group.cat.categories) == 6
        # Generated ages are all adults
        assert age_group.notna().all()

    def test_chi_square_screen(self, pipeline_results):
        chi_square = pipeline_results['attrition'].chi_square.set_index('Variable')
        config = load_config()

        assert list(chi_square.index) == config.analysis.demographic_columns
        assert (chi_square['P_Value'].between(0, 1)).all()
        # Generated attrition depends on locality
        assert bool(chi_square.loc['pre_urban_rural', 'Significant'])
        assert chi_square.loc['pre_water_source', 'Degrees_of_Freedom'] == 3

    def test_crosstabs_cover_merged_panel(self, pipeline_results):
        attrition = pipeline_results['attrition']
        counts = attrition.crosstabs['pre_sex']
        assert counts.to_numpy().sum() == len(attrition.merged)
        assert set(counts.columns) == {REINTERVIEWED, NOT_REINTERVIEWED}

    def test_merged_export_frame_is_labelled(self, pipeline_results):
        exported = pipeline_results['attrition'].merged.to_export_frame()
        assert set(exported['pre_sex'].unique()) == {'Male', 'Female'}
        assert set(exported['reinterview'].unique()) == {REINTERVIEWED, NOT_REINTERVIEWED}


class TestStageComposition:

    def test_stages_compose_without_shared_state(self, panel_files):
        tables = load_panel(*panel_files)
        report = clean_baseline(tables['baseline'])
        followup = prepare_followup(tables['followup'])
        merged = build_merged_panel(report.table, followup)

        # Earlier stage outputs are never modified by later ones
        assert len(tables['baseline']) == 8909
        assert 'interview_completed' not in tables['followup'].columns
        assert 'reinterview' not in report.table.columns
        assert len(merged) == len(report.table)

    def test_outcome_group_comparison(self, panel_files):
        tables = load_panel(*panel_files)
        report = clean_baseline(tables['baseline'])
        comparison = compare_outcome_groups(report.table)

        sex = comparison['sex_by_outcome']
        partial_female = sex[(sex['outcome_group'] == 'Partially complete')
                             & (sex['pre_sex'] == 'Female')]['percentage'].iloc[0]
        assert partial_female > 60

        age = comparison['age_by_outcome'].set_index('outcome_group')
        assert age.loc['Completed', 'n'] == 8796
        assert age.loc['Partially complete', 'n'] == 112


class TestPipelineRunner:

    def test_runner_generates_and_analyses(self, tmp_path, monkeypatch):
        """Run all stage scripts on a small generated panel in a scratch directory."""
        monkeypatch.chdir(tmp_path)
        config = load_config()
        config.update_config({'generation': {
            'n_baseline': 900, 'n_partial': 30, 'n_incomplete': 1, 'n_followup': 500,
        }})
        config_path = tmp_path / 'config.yaml'
        config.save_config(config_path)

        exit_code = run_complete_pipeline.main(['--config', str(config_path), '--generate'])

        assert exit_code == 0
        assert Path('data/raw/pre_cyclone_baseline.dta').exists()
        assert Path('output/attrition_chi_square.csv').exists()
        assert Path('output/baseline_outcome_counts.csv').exists()
        assert Path('output/visualizations/reinterview_by_pre_sex.png').exists()

        merged = pd.read_csv('data/processed/merged_panel.csv')
        assert len(merged) == 899
        assert int((merged['reinterview_status'] == REINTERVIEWED).sum()) == 500

    def test_runner_fails_without_inputs(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        assert run_complete_pipeline.main([]) == 1

    @pytest.mark.parametrize('stage', [
        '01_generate_sample_panel', '02_baseline_exploration', '03_attrition_analysis',
    ])
    def test_stages_ship_in_scripts_package(self, stage):
        """Stages import from the installed scripts package, not from the working tree."""
        module = importlib.import_module(f'{run_complete_pipeline.STAGE_PACKAGE}.{stage}')

        assert callable(module.main)
        assert Path(module.__file__).parent == Path(scripts.__file__).parent
