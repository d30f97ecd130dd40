"""Internal UI constants for the Kemono Discord app."""

from __future__ import annotations

from textual.binding import Binding, BindingType

APP_CSS = """
Screen {
    background: $th-background;
}

Header {
    background: $th-panel-alt;
    color: $th-text;
}

TabbedContent {
    height: 1fr;
}

TabPane {
    padding: 0;
}

.pane-body {
    height: 1fr;
    background: $th-panel;
}

.search-box {
    width: 100%;
    border: tall $th-accent;
    background: $th-background;
}

.search-box:focus {
    border: tall $th-accent-alt;
}

#browse-search {
    display: none;
}

#browse-search.visible {
    display: block;
}

#suggestion-list {
    height: auto;
    max-height: 6;
    border: none;
    background: $th-panel;
}

#suggestion-list.-hidden {
    display: none;
}

.server-list {
    height: 1fr;
    scrollbar-gutter: stable;
    scrollbar-color: $th-scrollbar-thumb;
    scrollbar-color-active: $th-scrollbar-active;
}

.server-list > .option-list--option-highlighted {
    background: $th-highlight;
}

.server-list:focus > .option-list--option-highlighted {
    background: $th-panel-alt;
}

#channel-title {
    padding: 0 1;
    color: $th-accent;
    text-style: bold;
}
"""

APP_BINDINGS: list[BindingType] = [
    Binding("q", "quit", "Quit", show=False),
    Binding("f1", "show_tab('servers')", "Servers", show=False),
    Binding("f2", "show_tab('search')", "Search", show=False),
    Binding("ctrl+t", "cycle_theme", "Theme", show=False),
]

BROWSE_BINDINGS: list[BindingType] = [
    Binding("slash", "toggle_search", "Search", show=False),
    Binding("escape", "close_search", "Close search", show=False),
    Binding("r", "retry", "Retry", show=False),
    Binding("m", "load_more", "Load more", show=False),
]

SEARCH_BINDINGS: list[BindingType] = [
    Binding("left_square_bracket", "prev_page", "Prev page", show=False),
    Binding("right_square_bracket", "next_page", "Next page", show=False),
    Binding("r", "retry", "Retry", show=False),
    Binding("escape", "clear_search", "Clear", show=False),
]

CHANNEL_BINDINGS: list[BindingType] = [
    Binding("escape", "go_back", "Back", show=False),
    Binding("slash", "focus_filter", "Filter", show=False),
    Binding("r", "retry", "Retry", show=False),
]

# Footer hints per context: (key, label)
FOOTER_HINTS: dict[str, list[tuple[str, str]]] = {
    "servers": [
        ("/", "search"),
        ("enter", "channels"),
        ("m", "more"),
        ("r", "retry"),
        ("F2", "search tab"),
        ("q", "quit"),
    ],
    "search": [
        ("enter", "search/open"),
        ("[ ]", "page"),
        ("r", "retry"),
        ("esc", "clear"),
        ("F1", "servers tab"),
        ("q", "quit"),
    ],
    "channels": [
        ("/", "filter"),
        ("enter", "open"),
        ("r", "retry"),
        ("esc", "back"),
    ],
}

__all__ = [
    "APP_BINDINGS",
    "APP_CSS",
    "BROWSE_BINDINGS",
    "CHANNEL_BINDINGS",
    "FOOTER_HINTS",
    "SEARCH_BINDINGS",
]
