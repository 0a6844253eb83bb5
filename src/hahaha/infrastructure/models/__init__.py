from ._history import History
from ._linear_regression import LinearRegression
from ._sequential import Sequential

__all__ = ["History", "LinearRegression", "Sequential"]
