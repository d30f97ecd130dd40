"""Colour palettes and the Textual themes built from them."""

from __future__ import annotations

from textual.theme import Theme as TextualTheme

MONOKAI_THEME: dict[str, str] = {
    "background": "#272822",
    "panel": "#1e1e1e",
    "panel_alt": "#3e3d32",
    "text": "#f8f8f2",
    "muted": "#75715e",
    "accent": "#66d9ef",
    "accent_alt": "#e6db74",
    "green": "#a6e22e",
    "orange": "#fd971f",
    "pink": "#f92672",
    "highlight": "#49483e",
    "scrollbar": "#75715e",
    "scrollbar_active": "#66d9ef",
}

DISCORD_DARK_THEME: dict[str, str] = {
    "background": "#313338",
    "panel": "#2b2d31",
    "panel_alt": "#1e1f22",
    "text": "#dbdee1",
    "muted": "#949ba4",
    "accent": "#5865f2",
    "accent_alt": "#fee75c",
    "green": "#57f287",
    "orange": "#f0b232",
    "pink": "#ed4245",
    "highlight": "#404249",
    "scrollbar": "#1a1b1e",
    "scrollbar_active": "#5865f2",
}

KEMONO_THEME: dict[str, str] = {
    "background": "#1d1f20",
    "panel": "#282a2e",
    "panel_alt": "#3b3e44",
    "text": "#e8a17d",
    "muted": "#8a8d91",
    "accent": "#f08a47",
    "accent_alt": "#ffd27f",
    "green": "#8ec07c",
    "orange": "#fe8019",
    "pink": "#fb4934",
    "highlight": "#3b3e44",
    "scrollbar": "#5a5e66",
    "scrollbar_active": "#f08a47",
}

THEMES: dict[str, dict[str, str]] = {
    "monokai": MONOKAI_THEME,
    "discord-dark": DISCORD_DARK_THEME,
    "kemono": KEMONO_THEME,
}
THEME_NAMES: list[str] = list(THEMES.keys())
DEFAULT_THEME_NAME = "monokai"


def _build_textual_theme(name: str, colors: dict[str, str]) -> TextualTheme:
    """Convert a palette to a Textual Theme exposing $th-* CSS variables."""
    variables = {
        "th-background": colors["background"],
        "th-panel": colors["panel"],
        "th-panel-alt": colors["panel_alt"],
        "th-highlight": colors["highlight"],
        "th-accent": colors["accent"],
        "th-accent-alt": colors["accent_alt"],
        "th-muted": colors["muted"],
        "th-text": colors["text"],
        "th-green": colors["green"],
        "th-orange": colors["orange"],
        "th-pink": colors["pink"],
        "th-scrollbar-thumb": colors["scrollbar"],
        "th-scrollbar-active": colors["scrollbar_active"],
    }
    return TextualTheme(
        name=name,
        primary=colors["accent"],
        secondary=colors["accent_alt"],
        accent=colors["green"],
        foreground=colors["text"],
        background=colors["background"],
        surface=colors["panel"],
        panel=colors["panel_alt"],
        warning=colors["orange"],
        error=colors["pink"],
        success=colors["green"],
        dark=True,
        variables=variables,
    )


TEXTUAL_THEMES: dict[str, TextualTheme] = {
    name: _build_textual_theme(name, colors) for name, colors in THEMES.items()
}


# Active palette used by Rich markup renderers; updated in place on theme change
THEME_COLORS = MONOKAI_THEME.copy()


def resolve_theme_name(name: str) -> str:
    """Return *name* if it is a known theme, else the default theme."""
    return name if name in THEMES else DEFAULT_THEME_NAME


def apply_theme_colors(name: str) -> str:
    """Make *name* the active markup palette and return the resolved name."""
    resolved = resolve_theme_name(name)
    THEME_COLORS.clear()
    THEME_COLORS.update(THEMES[resolved])
    return resolved


__all__ = [
    "DEFAULT_THEME_NAME",
    "DISCORD_DARK_THEME",
    "KEMONO_THEME",
    "MONOKAI_THEME",
    "TEXTUAL_THEMES",
    "THEMES",
    "THEME_COLORS",
    "THEME_NAMES",
    "apply_theme_colors",
    "resolve_theme_name",
]
