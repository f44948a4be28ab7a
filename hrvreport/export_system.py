"""
export_system.py - Print/export of the composed report

PDF: one sheet per analysis instance, in page order, headed with the page
number and analysis title. CSV: the filtered intervals and a one-row
metrics summary.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Union

import numpy as np
import pandas as pd
import matplotlib.pyplot as plt
from matplotlib.backends.backend_pdf import PdfPages

from hrvreport.analysis_registry import get_spec
from hrvreport.metrics.freq_domain import band_powers
from hrvreport.metrics.nonlinear import poincare_analysis
from hrvreport.metrics.time_domain import calculate_metrics
from hrvreport.rendering.plots import PAGE_SIZES, table_figure, text_figure
from hrvreport.rendering.renderer import RenderResult, RenderStatus

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class ReportExporter:
    """Exports the state of a ReportBuilder"""

    def __init__(self, builder):
        self.builder = builder
        self.export_timestamp = datetime.now()

    @property
    def page_size(self):
        return PAGE_SIZES[self.builder.report.orientation]

    async def export_pdf(self, file_path: PathLike) -> int:
        """
        Render every page and write a multi-page PDF.

        Returns:
            Number of sheets written
        """
        all_pages = await self.builder.render_all_pages()
        sheets = 0

        with PdfPages(str(file_path)) as pdf:
            if not any(all_pages):
                fig = text_figure(
                    "This report has no analyses yet.", "HRV Report", figsize=self.page_size
                )
                pdf.savefig(fig, bbox_inches="tight")
                plt.close(fig)
                return 1

            for page_index, results in enumerate(all_pages):
                for result in results:
                    heading = f"Page {page_index + 1} - {get_spec(result.kind).title}"
                    for fig, owned in self._figures_for(result, heading):
                        pdf.savefig(fig, bbox_inches="tight")
                        sheets += 1
                        # Figures held by the chart registry stay open for the host
                        if owned:
                            plt.close(fig)

            info = pdf.infodict()
            info["Title"] = "HRV Report"
            info["CreationDate"] = self.export_timestamp

        logger.info("Exported %d sheet(s) to %s", sheets, file_path)
        return sheets

    def _figures_for(self, result: RenderResult, heading: str):
        size = self.page_size

        if result.status != RenderStatus.OK:
            color = "red" if result.status == RenderStatus.ERROR else "gray"
            yield text_figure(result.message or "", heading, figsize=size, color=color), True
            return

        if result.figure is not None:
            result.figure.suptitle(heading, fontsize=12, fontweight="bold")
            yield result.figure, False
        elif result.table is not None:
            yield table_figure(result.table, heading, figsize=size), True
        elif result.text is not None:
            yield text_figure(result.text, heading, figsize=size), True
        else:
            for section in result.sections:
                title = f"{heading}: {section.title}"
                if section.has_data:
                    yield table_figure(section.table, title, figsize=size), True
                if section.text:
                    yield text_figure(section.text, title, figsize=size), True

    def export_intervals_csv(self, file_path: PathLike) -> int:
        """Filtered intervals with timestamp and heart rate; returns row count"""
        intervals = self.builder.dataset.filtered_view()
        frame = pd.DataFrame(
            {
                "original_index": [i.original_index for i in intervals],
                "timestamp": [i.timestamp.isoformat() if i.timestamp else "" for i in intervals],
                "rr_ms": [i.value for i in intervals],
                "hr_bpm": [round(i.heart_rate, 3) for i in intervals],
            },
            columns=["original_index", "timestamp", "rr_ms", "hr_bpm"],
        )
        frame.to_csv(file_path, index=False)
        return len(frame)

    def collect_metrics(self, decimal_places: int = 3) -> Dict[str, Any]:
        values = self.builder.dataset.filtered_values()
        config = self.builder.config

        metrics_data: Dict[str, Any] = {
            "export_timestamp": self.export_timestamp.isoformat(),
            "n_loaded": len(self.builder.dataset),
            "n_excluded": len(self.builder.dataset.excluded_indices),
        }

        time_domain = calculate_metrics(values) or {}
        for key, value in time_domain.items():
            metrics_data[f"time_{key}"] = round(value, decimal_places)

        if values.size >= 3:
            for key, value in poincare_analysis(values).items():
                metrics_data[f"poincare_{key}"] = round(value, decimal_places)

        if values.size:
            freq = band_powers(
                values,
                resampling_rate_hz=config.resampling_rate_hz,
                min_duration_s=config.min_spectral_duration_s,
            )
            for key, value in freq.items():
                metrics_data[f"freq_{key}"] = (
                    round(value, decimal_places) if np.isfinite(value) else None
                )

        return metrics_data

    def export_metrics_csv(self, file_path: PathLike, decimal_places: int = 3) -> Dict[str, Any]:
        metrics_data = self.collect_metrics(decimal_places)
        pd.DataFrame([metrics_data]).to_csv(file_path, index=False)
        return metrics_data

