"""Display theme and matching basemaps."""

from collections.abc import Callable
from enum import Enum

from .. import config
from ..reactive import Signal


class Theme(str, Enum):
    LIGHT = "light"
    DARK = "dark"


class ThemeMode(str, Enum):
    LIGHT = "light"
    DARK = "dark"
    SYSTEM = "system"


BASEMAPS = {
    Theme.LIGHT: config.LIGHT_TILES,
    Theme.DARK: config.DARK_TILES,
}

MODE_CYCLE = (ThemeMode.SYSTEM, ThemeMode.LIGHT, ThemeMode.DARK)


def basemap_url(theme: Theme) -> str:
    return BASEMAPS[theme]


class ThemeSettings:
    """
    Selected theme mode and the theme it resolves to.

    `resolved` is the signal the map listens to. Storing the preference
    is left to the host.
    """

    def __init__(
        self,
        mode: ThemeMode = ThemeMode.DARK,
        prefers_dark: Callable[[], bool] = lambda: False,
    ):
        self.prefers_dark = prefers_dark
        self.mode: Signal[ThemeMode] = Signal(ThemeMode(mode))
        self.resolved: Signal[Theme] = Signal(self._resolve(self.mode.value))

    def _resolve(self, mode: ThemeMode) -> Theme:
        if mode is ThemeMode.SYSTEM:
            return Theme.DARK if self.prefers_dark() else Theme.LIGHT
        return Theme(mode.value)

    def set_mode(self, mode: ThemeMode | str) -> None:
        mode = ThemeMode(mode)
        self.mode.set(mode)
        self.resolved.set(self._resolve(mode))

    def cycle(self) -> ThemeMode:
        """Advance system -> light -> dark -> system."""
        index = MODE_CYCLE.index(self.mode.value)
        self.set_mode(MODE_CYCLE[(index + 1) % len(MODE_CYCLE)])
        return self.mode.value

    def system_changed(self) -> None:
        """Re-resolve after the host's colour-scheme preference changed."""
        if self.mode.value is ThemeMode.SYSTEM:
            self.resolved.set(self._resolve(ThemeMode.SYSTEM))
