"""
Sequential container module.

`Sequential` applies its child modules in order:

    y = L_n(...L_2(L_1(x)))

Children are registered as submodules under their index, so `parameters()`
reaches every layer.
"""

from __future__ import annotations

from typing import Iterator, List, Optional, Tuple

from .._module import Module


class Sequential(Module):
    """
    Ordered container of modules.

    Parameters
    ----------
    *layers : Module
        Child modules, applied in the given order.
    """

    def __init__(self, *layers: Module) -> None:
        super().__init__()
        self._layers: List[Module] = []
        for layer in layers:
            self.add(layer)

    def add(self, layer: Module, name: Optional[str] = None) -> None:
        """
        Append a module.

        Raises
        ------
        TypeError
            If `layer` is not a `Module`.
        ValueError
            If `name` is already used by another child.
        """
        if not isinstance(layer, Module):
            raise TypeError(f"Sequential expects Module, got {type(layer)!r}")
        key = str(len(self._layers)) if name is None else str(name)
        if key in self._modules:
            raise ValueError(f"Duplicate layer name: {key!r}")
        self.register_module(key, layer)
        self._layers.append(layer)

    def forward(self, x):
        for layer in self._layers:
            x = layer(x)
        return x

    def __len__(self) -> int:
        return len(self._layers)

    def __iter__(self) -> Iterator[Module]:
        return iter(self._layers)

    def __getitem__(self, idx: int) -> Module:
        return self._layers[idx]

    @property
    def layers(self) -> Tuple[Module, ...]:
        return tuple(self._layers)

    def summary(self) -> str:
        """
        One line per layer with its parameter count.
        """
        lines: List[str] = []
        total = 0
        for i, layer in enumerate(self._layers):
            n = sum(p.size for p in layer.parameters())
            total += n
            lines.append(f"[{i}] {layer!r} params={n}")
        lines.append(f"Total params: {total}")
        return "\n".join(lines)
