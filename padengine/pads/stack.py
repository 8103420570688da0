# padengine/pads/stack.py
"""
ActiveStack - Render precedence of concurrently playing pads.

Most recently activated pad is last (top). In full screen only the top layer
takes pointer input; background layers are forced fully opaque so the host
keeps them rendering, and their players keep running.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple

Z_BASE = 3000
TOP_LAYER_OPACITY = 0.999


@dataclass(frozen=True)
class LayerHint:
    """Rendering hint for one stacked pad. None means "no override"."""
    index: int
    z_index: int
    opacity: Optional[float] = None
    interactive: Optional[bool] = None


class ActiveStack:

    def __init__(self):
        self._order: List[int] = []

    def push(self, index: int):
        """Move `index` to the top, adding it if absent."""
        if index in self._order:
            self._order.remove(index)
        self._order.append(index)

    def remove(self, index: int) -> bool:
        if index in self._order:
            self._order.remove(index)
            return True
        return False

    def clear(self):
        self._order.clear()

    @property
    def top(self) -> Optional[int]:
        return self._order[-1] if self._order else None

    @property
    def order(self) -> Tuple[int, ...]:
        return tuple(self._order)

    def __contains__(self, index) -> bool:
        return index in self._order

    def __iter__(self) -> Iterator[int]:
        return iter(tuple(self._order))

    def __len__(self) -> int:
        return len(self._order)

    def render(
        self,
        fullscreen: bool = False,
        z_base: int = Z_BASE,
        top_opacity: float = TOP_LAYER_OPACITY,
    ) -> Tuple[LayerHint, ...]:
        layers = []
        last = len(self._order) - 1
        for position, index in enumerate(self._order):
            z = z_base + position
            if not fullscreen:
                layers.append(LayerHint(index=index, z_index=z))
                continue
            is_top = position == last
            layers.append(LayerHint(
                index=index,
                z_index=z,
                opacity=top_opacity if is_top else 1.0,
                interactive=is_top,
            ))
        return tuple(layers)
