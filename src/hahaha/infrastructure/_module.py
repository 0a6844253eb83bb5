"""
Infrastructure module base class.

`Module` satisfies the domain-level `IModule` protocol and provides what every
layer needs:

- implicit registration of `Parameter` and child `Module` attributes
- recursive parameter traversal (`parameters`, `named_parameters`)
- `zero_grad` over all parameters
- `__call__` forwarding to `forward`
"""

from __future__ import annotations

from typing import Dict, Iterable, Iterator, Optional

from ..domain._module import IModule
from ..domain._parameter import IParameter
from ._parameter import Parameter


class Module(IModule):
    """
    Base class for layers and models.

    Attributes
    ----------
    _parameters : Dict[str, IParameter]
        Parameters registered directly on this module.
    _modules : Dict[str, Module]
        Child modules registered on this module.

    Notes
    -----
    Assigning a `Parameter` or `Module` to an attribute registers it;
    assigning None to a registered name unregisters it.
    """

    def __init__(self) -> None:
        # bypass our __setattr__ for the bookkeeping dicts
        super().__setattr__("_parameters", {})
        super().__setattr__("_modules", {})

    def __setattr__(self, name: str, value) -> None:
        if value is None:
            self._parameters.pop(name, None)
            self._modules.pop(name, None)
        elif isinstance(value, Parameter):
            self._parameters[name] = value
        elif isinstance(value, Module):
            self._modules[name] = value
        super().__setattr__(name, value)

    def register_parameter(self, name: str, param: Optional[IParameter]) -> None:
        """
        Register a parameter under `name`. None is ignored.
        """
        if param is None:
            return
        self._parameters[name] = param
        super().__setattr__(name, param)

    def register_module(self, name: str, module: Optional["Module"]) -> None:
        """
        Register a child module under `name`. None is ignored.
        """
        if module is None:
            return
        self._modules[name] = module
        super().__setattr__(name, module)

    def parameters(self) -> Iterable[IParameter]:
        """
        Yield this module's parameters, then those of every submodule.
        """
        for p in self._parameters.values():
            yield p
        for m in self._modules.values():
            yield from m.parameters()

    def named_parameters(self, prefix: str = "") -> Iterator[tuple[str, IParameter]]:
        """
        Yield ``(qualified_name, parameter)`` pairs recursively.
        """
        base = prefix + "." if prefix else ""

        for name, p in self._parameters.items():
            yield (f"{base}{name}", p)

        for child_name, child in self._modules.items():
            yield from child.named_parameters(f"{base}{child_name}")

    def zero_grad(self) -> None:
        for p in self.parameters():
            p.zero_grad()

    def forward(self, x):
        """
        Execute the forward computation. Subclasses must implement this.
        """
        raise NotImplementedError

    def __call__(self, x):
        return self.forward(x)
