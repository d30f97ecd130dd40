"""Widget chrome: footer key hints, pagination bar and status line."""

from __future__ import annotations

from textual.widgets import Static

from kemono_discord.paging import PageState
from kemono_discord.themes import THEME_COLORS
from kemono_discord.widgets.listing import escape_rich_text


class ContextFooter(Static):
    """Context-sensitive footer showing relevant keybindings."""

    DEFAULT_CSS = """
    ContextFooter {
        dock: bottom;
        height: 1;
        background: $th-background;
        color: $th-muted;
        padding: 0 1;
        border-top: solid $th-panel-alt;
    }
    """

    def render_bindings(self, bindings: list[tuple[str, str]], mode_badge: str = "") -> None:
        """Update the footer with a list of (key, label) binding hints."""
        accent = THEME_COLORS["accent"]
        muted = THEME_COLORS["muted"]
        parts = []
        if mode_badge:
            parts.append(mode_badge)
        for key, label in bindings:
            safe_key = escape_rich_text(key)
            if key and label:
                parts.append(f"[bold {accent}]{safe_key}[/] [{muted}]{label}[/]")
            elif label:
                parts.append(f"[italic {muted}]{label}[/]")
        self.update("  ".join(parts))


class PaginationBar(Static):
    """``◀ Page 2 of 5 ▶`` with dimmed arrows at either end."""

    DEFAULT_CSS = """
    PaginationBar {
        height: 1;
        width: 100%;
        content-align: center middle;
        color: $th-text;
        background: $th-panel;
    }

    PaginationBar.-hidden {
        display: none;
    }
    """

    page_state: PageState | None = None

    def show_page(self, state: PageState) -> None:
        """Render *state*; the bar hides itself when there is nothing to page."""
        self.page_state = state
        self.set_class(state.total_pages <= 1, "-hidden")
        active = THEME_COLORS["accent"]
        muted = THEME_COLORS["muted"]
        prev_arrow = f"[{active if state.can_prev else muted}]◀[/]"
        next_arrow = f"[{active if state.can_next else muted}]▶[/]"
        self.update(f"{prev_arrow}  {state.label}  {next_arrow}")


class StatusLine(Static):
    """One-line loading / error / summary indicator above a list."""

    DEFAULT_CSS = """
    StatusLine {
        height: auto;
        padding: 0 1;
        color: $th-muted;
    }

    StatusLine.-error {
        color: $th-pink;
    }

    StatusLine.-loading {
        color: $th-accent-alt;
    }
    """

    text = ""

    def show_loading(self, message: str = "Loading...") -> None:
        self.text = message
        self.set_class(False, "-error")
        self.set_class(True, "-loading")
        self.update(escape_rich_text(message))

    def show_error(self, message: str) -> None:
        self.text = message
        self.set_class(False, "-loading")
        self.set_class(True, "-error")
        self.update(escape_rich_text(message))

    def show_message(self, message: str) -> None:
        self.text = message
        self.set_class(False, "-error")
        self.set_class(False, "-loading")
        self.update(escape_rich_text(message))


__all__ = [
    "ContextFooter",
    "PaginationBar",
    "StatusLine",
]
