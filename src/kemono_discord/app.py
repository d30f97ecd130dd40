"""Main Textual application: Servers and Search tabs over the Kemono catalog."""

from __future__ import annotations

import logging

import httpx
from textual import on
from textual.app import App, ComposeResult
from textual.css.query import NoMatches
from textual.widgets import Header, TabbedContent, TabPane

from kemono_discord.config import save_config
from kemono_discord.models import TAB_NAMES, UserConfig
from kemono_discord.panes import ServerBrowsePane, ServerSearchPane
from kemono_discord.screens import ChannelListScreen
from kemono_discord.services.interfaces import AppServices, build_default_app_services
from kemono_discord.themes import TEXTUAL_THEMES, THEME_NAMES, apply_theme_colors
from kemono_discord.ui_constants import APP_BINDINGS, APP_CSS, FOOTER_HINTS
from kemono_discord.widgets import ContextFooter, ServerChosen

logger = logging.getLogger(__name__)


class KemonoDiscordApp(App):
    """A TUI to browse and search the Discord servers archived on Kemono."""

    TITLE = "Kemono Discord"

    CSS = APP_CSS

    BINDINGS = APP_BINDINGS

    def __init__(
        self,
        config: UserConfig | None = None,
        services: AppServices | None = None,
        initial_tab: str = "servers",
        initial_query: str = "",
    ) -> None:
        super().__init__()
        # Register all Textual themes so $th-* CSS variables resolve before compose()
        for textual_theme in TEXTUAL_THEMES.values():
            self.register_theme(textual_theme)
        self._config = config or UserConfig()
        self._services: AppServices = services or build_default_app_services()
        self._initial_tab = initial_tab if initial_tab in TAB_NAMES else TAB_NAMES[0]
        self._initial_query = initial_query
        self._active_tab = self._initial_tab
        self._http_client: httpx.AsyncClient | None = None
        self._config.theme_name = apply_theme_colors(self._config.theme_name)
        self.theme = self._config.theme_name

    @property
    def config(self) -> UserConfig:
        return self._config

    @property
    def services(self) -> AppServices:
        return self._services

    @property
    def http_client(self) -> httpx.AsyncClient | None:
        """Shared client for connection pooling; ``None`` outside the app's lifetime."""
        return self._http_client

    def compose(self) -> ComposeResult:
        yield Header()
        with TabbedContent(initial=self._initial_tab, id="tabs"):
            with TabPane("Servers", id="servers"):
                yield ServerBrowsePane(id="browse-pane")
            with TabPane("Search", id="search"):
                yield ServerSearchPane(initial_query=self._initial_query, id="search-pane")
        yield ContextFooter()

    def on_mount(self) -> None:
        """Create the shared HTTP client before the panes issue their first request."""
        self._http_client = httpx.AsyncClient()

        if self._config.config_defaulted:
            self.notify(
                "Config file was corrupt and has been ignored. Using defaults.",
                severity="warning",
                timeout=8,
            )
        self._update_footer()
        logger.debug("App mounted: tab=%s, theme=%s", self._active_tab, self._config.theme_name)

    async def on_unmount(self) -> None:
        """Save the session and close the shared HTTP client."""
        self._save_session_state()

        client = self._http_client
        self._http_client = None
        if client is not None:
            try:
                await client.aclose()
            except Exception as e:
                logger.debug(
                    "Failed to close shared HTTP client during shutdown: %s", e, exc_info=True
                )

    def _save_session_state(self) -> None:
        # Widgets may already be gone here; the search pane keeps last_query current
        self._config.session.last_tab = self._active_tab
        if not save_config(self._config):
            logger.warning("Could not save session state")

    def _update_footer(self) -> None:
        try:
            footer = self.screen.query_one(ContextFooter)
        except NoMatches:
            return
        footer.render_bindings(FOOTER_HINTS[self._active_tab], mode_badge=self._config.theme_name)

    # ── navigation ───────────────────────────────────────────────────────

    @on(TabbedContent.TabActivated, "#tabs")
    def on_tab_activated(self, event: TabbedContent.TabActivated) -> None:
        tab_id = event.pane.id or ""
        if tab_id in TAB_NAMES:
            self._active_tab = tab_id
            self._update_footer()

    def action_show_tab(self, tab: str) -> None:
        if tab not in TAB_NAMES:
            return
        try:
            self.query_one("#tabs", TabbedContent).active = tab
        except NoMatches:
            return

    def action_cycle_theme(self) -> None:
        names = list(THEME_NAMES)
        current = self._config.theme_name
        index = names.index(current) if current in names else -1
        name = names[(index + 1) % len(names)]
        self._config.theme_name = apply_theme_colors(name)
        self.theme = self._config.theme_name
        self._update_footer()
        self.notify(f"Theme: {self._config.theme_name}")

    def on_server_chosen(self, message: ServerChosen) -> None:
        logger.debug("Opening channels of server %s", message.server.id)
        self.push_screen(ChannelListScreen(message.server))


__all__ = ["KemonoDiscordApp"]
