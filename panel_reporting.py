"""
Presentation and Export Helpers

Bar charts of group percentages and CSV export of tables produced by the
panel pipeline. The analysis modules only return frames; everything that
touches the screen or the disk lives here.

Author: Survey Analytics Team
Date: 2025
"""

from pathlib import Path
from typing import Union

import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt
import pandas as pd
import seaborn as sns

from panel_loader import SurveyTable
from scripts.logging_config import get_logger

logger = get_logger('reporting')

# Set plotting style
plt.style.use('default')
sns.set_palette("husl")


def setup_output_directories(output_dir: Union[str, Path] = 'output/visualizations') -> Path:
    """Create output directory for visualizations"""
    viz_dir = Path(output_dir)
    viz_dir.mkdir(parents=True, exist_ok=True)
    return viz_dir


def plot_group_percentages(percentages: pd.DataFrame, title: str,
                           output_path: Union[str, Path],
                           ylabel: str = 'Percentage (%)') -> Path:
    """
    Grouped bar chart of a percentage view (rows on the x axis, columns as hue).

    Parameters:
    -----------
    percentages : pd.DataFrame
        Output of panel_stats.crosstab_percentages
    title : str
        Figure title
    output_path : str or Path
        Where to save the PNG

    Returns:
    --------
    Path
        Saved figure path
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    row_name = percentages.index.name or 'group'
    col_name = percentages.columns.name or 'category'
    long_form = percentages.copy()
    long_form.index = long_form.index.astype(str)
    long_form.columns = long_form.columns.astype(str)
    long_form = long_form.rename_axis(index=row_name, columns=col_name)
    long_form = long_form.stack().rename('percentage').reset_index()

    fig, ax = plt.subplots(figsize=(10, 6))
    sns.barplot(data=long_form, x=row_name, y='percentage', hue=col_name, ax=ax)
    ax.set_title(title, fontsize=14, fontweight='bold')
    ax.set_xlabel(row_name.replace('_', ' ').title())
    ax.set_ylabel(ylabel)
    ax.set_ylim(0, 100)
    ax.tick_params(axis='x', rotation=30)
    ax.legend(title=col_name.replace('_', ' ').title())
    plt.tight_layout()
    plt.savefig(output_path, dpi=150, bbox_inches='tight')
    plt.close(fig)

    logger.info(f"Saved chart to {output_path}")
    return output_path


def export_table(table: Union[SurveyTable, pd.DataFrame], output_path: Union[str, Path],
                 use_labels: bool = True, index: bool = False) -> Path:
    """Write a SurveyTable (labels decoded) or a plain DataFrame to CSV."""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    if isinstance(table, SurveyTable):
        frame = table.to_export_frame(use_labels=use_labels)
    else:
        frame = table
    frame.to_csv(output_path, index=index)
    logger.info(f"Exported {len(frame):,} rows to {output_path}")
    return output_path


def print_section(title: str) -> None:
    """Section header for console reports."""
    print("\n" + "=" * 60)
    print(title.upper())
    print("=" * 60)
