"""
charts.py - Ownership of live matplotlib figures

Every figure an analysis renders is registered here under the instance's
chart id. Re-rendering, removing an instance or removing a page releases the
figure, so repeated renders never accumulate open figures.
"""

import logging
from typing import Dict, Iterator, Optional

import matplotlib.pyplot as plt
from matplotlib.figure import Figure

logger = logging.getLogger(__name__)


class ChartRegistry:
    def __init__(self):
        self._figures: Dict[str, Figure] = {}

    def __contains__(self, chart_id: str) -> bool:
        return chart_id in self._figures

    def __len__(self) -> int:
        return len(self._figures)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._figures))

    def get(self, chart_id: str) -> Optional[Figure]:
        return self._figures.get(chart_id)

    def register(self, chart_id: str, figure: Figure) -> None:
        """Take ownership of a figure, releasing any previous one for the id"""
        previous = self._figures.get(chart_id)
        if previous is not None and previous is not figure:
            self.release(chart_id)
        self._figures[chart_id] = figure

    def release(self, chart_id: str) -> bool:
        figure = self._figures.pop(chart_id, None)
        if figure is None:
            return False
        plt.close(figure)
        logger.debug("Released chart %s", chart_id)
        return True

    def release_all(self) -> int:
        count = 0
        for chart_id in list(self._figures):
            if self.release(chart_id):
                count += 1
        return count
