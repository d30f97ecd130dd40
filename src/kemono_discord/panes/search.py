"""Search tab: debounced server search with page-by-page results."""

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
from kemono_discord.controllers import SearchViewState, ServerSearchController
from kemono_discord.models import DiscordServer
from kemono_discord.scheduling import TaskScope, TextualScheduler
from kemono_discord.ui_constants import SEARCH_BINDINGS
from kemono_discord.widgets import (
    PaginationBar,
    ServerChosen,
    StatusLine,
    render_server_option,
)

logger = logging.getLogger(__name__)

SEARCH_PROMPT = "Type to search Kemono's Discord servers."


class ServerSearchPane(Vertical):
    """Search input, keyword suggestions, one page of results and a pager bar."""

    BINDINGS = SEARCH_BINDINGS

    def __init__(self, initial_query: str = "", **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._initial_query = initial_query
        self._scope: TaskScope | None = None
        self.controller: ServerSearchController | None = None
        self._shown: list[DiscordServer] = []
        self._suggestions: list[str] = []
        self._rendered_key: tuple[int, int] | None = None

    def compose(self) -> ComposeResult:
        yield Input(
            placeholder=" Search Discord servers...",
            id="search-input",
            classes="search-box",
        )
        yield OptionList(id="suggestion-list")
        yield StatusLine(SEARCH_PROMPT, id="search-status")
        yield OptionList(id="search-results", classes="server-list pane-body")
        yield PaginationBar(id="search-pagination")

    def on_mount(self) -> None:
        config = self.app.config
        services = self.app.services
        self._scope = TaskScope(TextualScheduler(self))

        def search(query: str):
            return services.discord.search_servers(
                client=self.app.http_client,
                query=query,
                base_url=config.search_api_url,
                timeout_seconds=config.request_timeout,
            )

        self.controller = ServerSearchController(
            self._scope,
            search,
            page_size=config.page_size,
            quiet_interval=config.search_debounce_ms / 1000,
        )
        self.controller.subscribe(self._on_state)
        self._refresh_suggestions()
        self._on_state(self.controller.snapshot())
        if self._initial_query:
            self.search_now(self._initial_query)

    def on_unmount(self) -> None:
        if self.controller is not None:
            self.controller.dispose()
        if self._scope is not None:
            self._scope.close()

    def search_now(self, query: str) -> None:
        """Put *query* in the input and search immediately."""
        search_input = self.query_one("#search-input", Input)
        with search_input.prevent(Input.Changed):
            search_input.value = query
        if self.controller is not None:
            self.controller.submit(query)
        self._refresh_suggestions()

    # ── state rendering ──────────────────────────────────────────────────

    def _on_state(self, state: SearchViewState) -> None:
        # Kept current so the session survives widget teardown on exit
        self.app.config.session.last_query = state.query
        status = self.query_one("#search-status", StatusLine)
        if not state.has_query:
            status.show_message(SEARCH_PROMPT)
        elif state.is_loading:
            status.show_loading(f'Searching for "{state.query}"...')
        elif state.error:
            status.show_error(build_retry_hint(state.error))
        elif not state.has_results:
            status.show_message(build_empty_results_message(state.query))
        else:
            status.show_message(build_result_count_label(state.page.total_items, state.query))

        self.query_one("#search-pagination", PaginationBar).show_page(state.page)
        self._render_page(state)
        self._refresh_suggestions()

    def _render_page(self, state: SearchViewState) -> None:
        if self.controller is None:
            return
        items = self.controller.results
        key = (id(items), state.page.current_page)
        if key == self._rendered_key:
            return
        self._rendered_key = key
        visible = self.controller.visible_results
        results = self.query_one("#search-results", OptionList)
        results.clear_options()
        results.add_options([Option(render_server_option(s, state.query)) for s in visible])
        self._shown = visible
        if visible:
            results.highlighted = 0

    def _refresh_suggestions(self) -> None:
        suggestion_list = self.query_one("#suggestion-list", OptionList)
        if self.controller is None or self.controller.query:
            suggestions: list[str] = []
        else:
            suggestions = self.controller.suggestions(limit=6)
        suggestion_list.set_class(not suggestions, "-hidden")
        if suggestions == self._suggestions:
            return
        self._suggestions = suggestions
        suggestion_list.clear_options()
        suggestion_list.add_options([Option(f"\U0001f50d {s}") for s in suggestions])

    # ── events ───────────────────────────────────────────────────────────

    @on(Input.Changed, "#search-input")
    def on_search_changed(self, event: Input.Changed) -> None:
        if self.controller is not None:
            self.controller.text_changed(event.value)
        self._refresh_suggestions()

    @on(Input.Submitted, "#search-input")
    def on_search_submitted(self, event: Input.Submitted) -> None:
        if self.controller is not None:
            self.controller.submit(event.value)
        if event.value.strip():
            self.query_one("#search-results", OptionList).focus()

    @on(OptionList.OptionSelected, "#suggestion-list")
    def on_suggestion_selected(self, event: OptionList.OptionSelected) -> None:
        idx = event.option_index
        if 0 <= idx < len(self._suggestions):
            self.search_now(self._suggestions[idx])
            self.query_one("#search-results", OptionList).focus()

    @on(OptionList.OptionSelected, "#search-results")
    def on_result_selected(self, event: OptionList.OptionSelected) -> None:
        idx = event.option_index
        if 0 <= idx < len(self._shown):
            self.post_message(ServerChosen(self._shown[idx]))

    # ── actions ──────────────────────────────────────────────────────────

    def action_next_page(self) -> None:
        if self.controller is not None:
            self.controller.navigator.next_page()

    def action_prev_page(self) -> None:
        if self.controller is not None:
            self.controller.navigator.prev_page()

    def action_retry(self) -> None:
        if self.controller is not None:
            self.controller.retry()

    def action_clear_search(self) -> None:
        search_input = self.query_one("#search-input", Input)
        with search_input.prevent(Input.Changed):
            search_input.value = ""
        if self.controller is not None:
            self.controller.clear()
        search_input.focus()


__all__ = ["SEARCH_PROMPT", "ServerSearchPane"]
