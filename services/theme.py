"""Light/dark signal observed by the history view to pick its palette."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Callable, List, Mapping, Optional

logger = logging.getLogger(__name__)

ThemeListener = Callable[[bool], None]

# COLORFGBG background indices that terminals use for dark backgrounds.
_DARK_BACKGROUNDS = {"0", "1", "2", "3", "4", "5", "6", "8"}


@dataclass(frozen=True, slots=True)
class Palette:
    """Display colours for the history chart."""

    line: str
    fill: str
    point_border: str
    grid: str
    grid_border: str
    tick: str
    legend: str
    tooltip_background: str
    tooltip_text: str
    tooltip_border: str


LIGHT_PALETTE = Palette(
    line="#dc2626",
    fill="#dc262630",
    point_border="#000000",
    grid="#e5e7eb",
    grid_border="#d1d5db",
    tick="#374151",
    legend="#1f2937",
    tooltip_background="#ffffff",
    tooltip_text="#1f2937",
    tooltip_border="#e5e7eb",
)

DARK_PALETTE = Palette(
    line="#ef4444",
    fill="#ef444430",
    point_border="#ffffff",
    grid="#333333",
    grid_border="#444444",
    tick="#f1f5f9",
    legend="#f1f5f9",
    tooltip_background="#1f2937",
    tooltip_text="#f1f5f9",
    tooltip_border="#374151",
)


def palette_for(dark: bool) -> Palette:
    return DARK_PALETTE if dark else LIGHT_PALETTE


def hex_to_rgb(color: str) -> tuple[int, int, int]:
    """Convert ``#rrggbb`` (alpha suffix ignored) to an RGB tuple."""
    digits = color.lstrip("#")
    return int(digits[0:2], 16), int(digits[2:4], 16), int(digits[4:6], 16)


def detect_dark_mode(
    preference: Optional[str] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> bool:
    """Resolve the initial theme.

    An explicit ``"dark"``/``"light"`` preference wins; otherwise the
    terminal's ``COLORFGBG`` background hint decides; otherwise light.
    """
    if preference in {"dark", "light"}:
        return preference == "dark"

    env = os.environ if environ is None else environ
    hint = env.get("COLORFGBG", "")
    if not hint:
        return False
    background = hint.rsplit(";", 1)[-1].strip()
    return background in _DARK_BACKGROUNDS


class ThemeSignal:
    """Externally owned light/dark flag with change notifications.

    Consumers only read :attr:`dark` and subscribe; the owner flips it with
    :meth:`set_dark`.
    """

    def __init__(self, dark: bool = False) -> None:
        self._dark = dark
        self._listeners: List[ThemeListener] = []

    @property
    def dark(self) -> bool:
        return self._dark

    def set_dark(self, dark: bool) -> None:
        if dark == self._dark:
            return
        self._dark = dark
        logger.debug("Theme changed to %s", "dark" if dark else "light")
        for listener in list(self._listeners):
            listener(dark)

    def subscribe(self, listener: ThemeListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe
