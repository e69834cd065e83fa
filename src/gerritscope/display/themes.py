"""Built-in SVG color themes and multi-color family palettes."""

from __future__ import annotations

import hashlib
from dataclasses import dataclass

from gerritscope.core.errors import UnknownTheme


@dataclass(frozen=True)
class Palette:
    bg: str
    border: str
    title: str
    text: str
    muted: str
    levels: tuple[str, str, str, str, str]  # levels[0] = no activity


@dataclass(frozen=True)
class Theme:
    name: str
    light: Palette
    dark: Palette | None = None  # set => switch on prefers-color-scheme

    @property
    def background(self) -> str:
        return self.light.bg

    @property
    def text_color(self) -> str:
        return self.light.text

    @property
    def scale(self) -> tuple[str, ...]:
        return self.light.levels


_GITHUB_LIGHT = Palette(
    bg="#ffffff", border="#d0d7de", title="#24292f", text="#57606a", muted="#6e7781",
    levels=("#ebedf0", "#9be9a8", "#40c463", "#30a14e", "#216e39"),
)
_GITHUB_DARK = Palette(
    bg="#0d1117", border="#30363d", title="#c9d1d9", text="#8b949e", muted="#6e7781",
    levels=("#161b22", "#0e4429", "#006d32", "#26a641", "#39d353"),
)

THEMES: dict[str, Theme] = {t.name: t for t in [
    Theme("github", _GITHUB_LIGHT, _GITHUB_DARK),
    Theme("github-light", _GITHUB_LIGHT),
    Theme("github-dark", _GITHUB_DARK),
    Theme("solarized-light", Palette(
        bg="#fdf6e3", border="#93a1a1", title="#073642", text="#657b83", muted="#93a1a1",
        levels=("#eee8d5", "#b5d5a8", "#6dbf67", "#3a9443", "#1a6e29"))),
    Theme("solarized-dark", Palette(
        bg="#002b36", border="#073642", title="#93a1a1", text="#657b83", muted="#586e75",
        levels=("#073642", "#0a3828", "#0a6640", "#1a8c52", "#2ab567"))),
    Theme("gruvbox-dark", Palette(
        bg="#282828", border="#504945", title="#ebdbb2", text="#a89984", muted="#7c6f64",
        levels=("#3c3836", "#1d4a26", "#2d6a2f", "#3d8c3d", "#52b452"))),
    Theme("gruvbox-light", Palette(
        bg="#fbf1c7", border="#d5c4a1", title="#3c3836", text="#665c54", muted="#928374",
        levels=("#f2e5bc", "#b8d8a8", "#6dbf67", "#3a9443", "#1a6e29"))),
    Theme("tokyo-night", Palette(
        bg="#1a1b26", border="#292e42", title="#c0caf5", text="#a9b1d6", muted="#565f89",
        levels=("#24283b", "#0d3b2e", "#1a6b3c", "#26a651", "#39d353"))),
    Theme("dracula", Palette(
        bg="#282a36", border="#44475a", title="#f8f8f2", text="#6272a4", muted="#44475a",
        levels=("#44475a", "#1a3d2b", "#2d6a35", "#3d9140", "#50bd55"))),
    Theme("catppuccin-mocha", Palette(
        bg="#1e1e2e", border="#313244", title="#cdd6f4", text="#a6adc8", muted="#6c7086",
        levels=("#313244", "#1a4731", "#1f6e3c", "#2a9c51", "#39d353"))),
]}

DEFAULT_THEME = "github"

# Hue families for multi-color mode: (light levels 1-4, dark levels 1-4).
FAMILY_PALETTES: list[tuple[str, tuple[str, ...], tuple[str, ...]]] = [
    ("green", ("#9be9a8", "#40c463", "#30a14e", "#216e39"),
              ("#0e4429", "#006d32", "#26a641", "#39d353")),
    ("blue", ("#a8d8f0", "#5ba3d9", "#1a6eb5", "#0d4a8c"),
             ("#0d2940", "#0d4a8c", "#1a6eb5", "#2e93d9")),
    ("purple", ("#d4b8f0", "#a370d9", "#7a3cba", "#531e8c"),
               ("#2a1040", "#4d1e8c", "#7a3cba", "#a855d9")),
    ("orange", ("#ffd199", "#ffaa44", "#e07b00", "#a85200"),
               ("#401d00", "#8c3d00", "#cc6600", "#ff8c1a")),
    ("red", ("#ffb3b3", "#ff6666", "#cc1a1a", "#991111"),
            ("#3d0000", "#8c0d0d", "#cc2222", "#e84444")),
    ("teal", ("#a8f0e8", "#3dd9c8", "#1aab99", "#0d7a6d"),
             ("#0d2e2b", "#0d6b60", "#1aab99", "#2dd4bf")),
]


def theme_by_name(name: str) -> Theme:
    theme = THEMES.get(name)
    if theme is None:
        raise UnknownTheme(name, list(THEMES))
    return theme


def family_hue(family: str) -> int:
    """Palette index for a family; depends only on the name, never on run order."""
    digest = hashlib.sha1(family.encode("utf-8")).digest()
    return int.from_bytes(digest[:4], "big") % len(FAMILY_PALETTES)
