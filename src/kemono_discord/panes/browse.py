"""Servers tab: popular servers with infinite scroll and an inline search."""

from __future__ import annotations

import logging
from typing import Any

from textual import on
from textual.app import ComposeResult
from textual.containers import Vertical
from textual.widgets import Input, OptionList
from textual.widgets.option_list import Option

from kemono_discord.action_messages import (
    build_empty_results_message,
    build_result_count_label,
    build_retry_hint,
)
from kemono_discord.controllers import (
    PopularServersController,
    PopularViewState,
    SearchViewState,
    ServerSearchController,
    normalize_lower,
)
from kemono_discord.models import DiscordServer
from kemono_discord.scheduling import TaskScope, TextualScheduler
from kemono_discord.ui_constants import BROWSE_BINDINGS
from kemono_discord.widgets import (
    ScrollReportingOptionList,
    ServerChosen,
    StatusLine,
    render_server_option,
)

logger = logging.getLogger(__name__)


class ServerBrowsePane(Vertical):
    """Popular servers revealed page by page as the list scrolls.

    ``/`` opens an inline search; while a query is active the list shows the
    search results instead of the popular servers.
    """

    BINDINGS = BROWSE_BINDINGS

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._scope: TaskScope | None = None
        self.popular: PopularServersController | None = None
        self.search: ServerSearchController | None = None
        self._shown: list[DiscordServer] = []
        self._rendered_mode = ""
        self._rendered_generation: int | None = None

    def compose(self) -> ComposeResult:
        yield Input(
            placeholder=" Search servers (lowercased, 500 ms debounce)",
            id="browse-search",
            classes="search-box",
        )
        yield StatusLine(id="browse-status")
        yield ScrollReportingOptionList(id="server-list", classes="server-list pane-body")

    def on_mount(self) -> None:
        config = self.app.config
        services = self.app.services
        self._scope = TaskScope(TextualScheduler(self))

        def fetch_popular():
            return services.discord.fetch_popular_servers(
                client=self.app.http_client,
                base_url=config.search_api_url,
                timeout_seconds=config.request_timeout,
            )

        def search(query: str):
            return services.discord.search_servers(
                client=self.app.http_client,
                query=query,
                base_url=config.search_api_url,
                timeout_seconds=config.request_timeout,
            )

        self.popular = PopularServersController(
            self._scope,
            fetch_popular,
            page_size=config.page_size,
            threshold=config.scroll_threshold,
            settle_delay=config.settle_delay_ms / 1000,
        )
        self.search = ServerSearchController(
            self._scope,
            search,
            page_size=config.page_size,
            quiet_interval=config.search_debounce_ms / 1000,
            normalize=normalize_lower,
        )
        self.popular.subscribe(self._on_popular_state)
        self.search.subscribe(self._on_search_state)
        self.popular.load()

    def on_unmount(self) -> None:
        if self.search is not None:
            self.search.dispose()
        if self.popular is not None:
            self.popular.dispose()
        if self._scope is not None:
            self._scope.close()

    # ── state rendering ──────────────────────────────────────────────────

    @property
    def searching(self) -> bool:
        return self.search is not None and bool(self.search.query)

    def _list(self) -> ScrollReportingOptionList:
        return self.query_one("#server-list", ScrollReportingOptionList)

    def _status(self) -> StatusLine:
        return self.query_one("#browse-status", StatusLine)

    def _on_popular_state(self, state: PopularViewState) -> None:
        if self.searching:
            return
        self._render_popular_status(state)
        self._sync_popular_options(state)

    def _render_popular_status(self, state: PopularViewState) -> None:
        status = self._status()
        window = state.window
        if state.is_loading:
            status.show_loading("Loading popular servers...")
        elif state.error:
            status.show_error(build_retry_hint(state.error))
        elif window.backing_length == 0:
            status.show_message("Discord servers will appear here when available.")
        elif window.is_expanding:
            status.show_loading(f"Loading more... ({window.visible_count}/{window.backing_length})")
        else:
            label = build_result_count_label(window.backing_length)
            status.show_message(f"{label}, showing {window.visible_count}")

    def _sync_popular_options(self, state: PopularViewState) -> None:
        """Append newly revealed servers; rebuild only on a new backing generation."""
        if self.popular is None:
            return
        option_list = self._list()
        items = self.popular.visible_items
        if (
            self._rendered_mode != "popular"
            or state.window.generation != self._rendered_generation
            or len(items) < len(self._shown)
        ):
            option_list.clear_options()
            self._shown = []
            self._rendered_mode = "popular"
            self._rendered_generation = state.window.generation
        new_items = items[len(self._shown) :]
        if new_items:
            option_list.add_options([Option(render_server_option(s)) for s in new_items])
            self._shown.extend(new_items)

    def _on_search_state(self, state: SearchViewState) -> None:
        if not state.has_query:
            if self._rendered_mode == "search" and self.popular is not None:
                self._rendered_mode = ""
                snapshot = self.popular.snapshot()
                self._render_popular_status(snapshot)
                self._sync_popular_options(snapshot)
            return
        if self.search is None:
            return
        status = self._status()
        if state.is_loading:
            status.show_loading(f'Searching for "{state.query}"...')
        elif state.error:
            status.show_error(build_retry_hint(state.error))
        elif not state.has_results:
            status.show_message(build_empty_results_message(state.query))
        else:
            status.show_message(build_result_count_label(state.page.total_items, state.query))

        results = self.search.results
        if self._rendered_mode == "search" and results == self._shown:
            return
        option_list = self._list()
        option_list.clear_options()
        option_list.add_options(
            [Option(render_server_option(s, state.query)) for s in results]
        )
        self._shown = list(results)
        self._rendered_mode = "search"
        self._rendered_generation = None

    # ── events ───────────────────────────────────────────────────────────

    @on(Input.Changed, "#browse-search")
    def on_search_changed(self, event: Input.Changed) -> None:
        if self.search is not None:
            self.search.text_changed(event.value)

    @on(Input.Submitted, "#browse-search")
    def on_search_submitted(self, event: Input.Submitted) -> None:
        if self.search is not None:
            self.search.submit(event.value)
        self._list().focus()

    @on(ScrollReportingOptionList.Scrolled, "#server-list")
    def on_list_scrolled(self, event: ScrollReportingOptionList.Scrolled) -> None:
        if self.popular is not None and self._rendered_mode == "popular":
            self.popular.on_scroll(event.scroll_y, event.max_scroll_y)

    @on(OptionList.OptionHighlighted, "#server-list")
    def on_server_highlighted(self, event: OptionList.OptionHighlighted) -> None:
        # Keyboard navigation onto the last revealed row also reveals more
        if self.popular is None or self._rendered_mode != "popular":
            return
        if event.option_index >= len(self._shown) - 1:
            self.popular.load_more()

    @on(OptionList.OptionSelected, "#server-list")
    def on_server_selected(self, event: OptionList.OptionSelected) -> None:
        idx = event.option_index
        if 0 <= idx < len(self._shown):
            self.post_message(ServerChosen(self._shown[idx]))

    # ── actions ──────────────────────────────────────────────────────────

    def action_toggle_search(self) -> None:
        search_input = self.query_one("#browse-search", Input)
        if search_input.has_class("visible"):
            self.action_close_search()
            return
        search_input.add_class("visible")
        search_input.focus()

    def action_close_search(self) -> None:
        search_input = self.query_one("#browse-search", Input)
        search_input.remove_class("visible")
        with search_input.prevent(Input.Changed):
            search_input.value = ""
        if self.search is not None:
            self.search.clear()
        self._list().focus()

    def action_retry(self) -> None:
        if self.searching and self.search is not None:
            self.search.retry()
        elif self.popular is not None:
            self.popular.load()

    def action_load_more(self) -> None:
        if self.popular is not None and not self.searching:
            self.popular.load_more()


__all__ = ["ServerBrowsePane"]
