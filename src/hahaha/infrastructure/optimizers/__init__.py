from ._optimizer import Optimizer
from ._sgd import SGD

__all__ = ["Optimizer", "SGD"]
