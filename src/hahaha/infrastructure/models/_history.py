"""
Per-epoch record of a training run.

`LinearRegression.fit` returns a `History` holding one float per metric per
completed epoch, so callers can plot or inspect the loss curve after training.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Union

Number = Union[int, float]


@dataclass
class History:
    """
    Metric curves of a training run.

    Attributes
    ----------
    history : Dict[str, List[float]]
        Metric name -> values, one per recorded epoch.
    epoch : List[int]
        Recorded epoch indices, zero-based.
    """

    history: Dict[str, List[float]] = field(default_factory=dict)
    epoch: List[int] = field(default_factory=list)

    def append_epoch(self, epoch_idx: int, logs: Mapping[str, Number]) -> None:
        self.epoch.append(int(epoch_idx))
        for name, value in logs.items():
            self.history.setdefault(name, []).append(float(value))

    def __getitem__(self, metric: str) -> List[float]:
        return self.history[metric]

    def last(self) -> Dict[str, float]:
        """
        Latest value of each recorded metric.
        """
        return {name: curve[-1] for name, curve in self.history.items() if curve}

    def best(self, metric: str = "loss") -> float:
        """
        Smallest recorded value of `metric`.

        Raises
        ------
        KeyError
            If `metric` was never recorded.
        """
        return min(self.history[metric])

    def __len__(self) -> int:
        return len(self.epoch)
