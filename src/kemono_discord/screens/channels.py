"""Channel list of one Discord server."""

from __future__ import annotations

import logging

from textual import on
from textual.app import ComposeResult
from textual.screen import Screen
from textual.widgets import Header, Input, Label, OptionList
from textual.widgets.option_list import Option

from kemono_discord.action_messages import build_retry_hint
from kemono_discord.controllers import ChannelListController, ChannelViewState
from kemono_discord.models import DiscordChannel, DiscordServer
from kemono_discord.scheduling import TaskScope, TextualScheduler
from kemono_discord.ui_constants import CHANNEL_BINDINGS, FOOTER_HINTS
from kemono_discord.widgets import ContextFooter, StatusLine, render_channel_option
from kemono_discord.widgets.listing import escape_rich_text, format_post_count

logger = logging.getLogger(__name__)


class ChannelListScreen(Screen[None]):
    """Channels of *server* grouped under their categories."""

    BINDINGS = CHANNEL_BINDINGS

    def __init__(self, server: DiscordServer) -> None:
        super().__init__()
        self.server = server
        self._scope: TaskScope | None = None
        self.controller: ChannelListController | None = None
        self._rows: list[DiscordChannel] = []

    def compose(self) -> ComposeResult:
        yield Header()
        yield Label(escape_rich_text(self.server.name or self.server.id), id="channel-title")
        yield Input(placeholder=" Filter channels...", id="channel-filter", classes="search-box")
        yield StatusLine(id="channel-status")
        yield OptionList(id="channel-list", classes="server-list pane-body")
        yield ContextFooter()

    def on_mount(self) -> None:
        config = self.app.config
        services = self.app.services
        server_id = self.server.id
        self._scope = TaskScope(TextualScheduler(self))

        def fetch_channels():
            return services.discord.fetch_server_channels(
                client=self.app.http_client,
                server_id=server_id,
                base_url=config.kemono_api_url,
                timeout_seconds=config.request_timeout,
            )

        self.controller = ChannelListController(self._scope, fetch_channels)
        self.controller.subscribe(self._on_state)
        self.query_one(ContextFooter).render_bindings(FOOTER_HINTS["channels"])
        self.controller.load()
        self.query_one("#channel-list", OptionList).focus()

    def on_unmount(self) -> None:
        if self.controller is not None:
            self.controller.dispose()
        if self._scope is not None:
            self._scope.close()

    def _on_state(self, state: ChannelViewState) -> None:
        status = self.query_one("#channel-status", StatusLine)
        if state.is_loading:
            status.show_loading("Loading channels...")
        elif state.error:
            status.show_error(build_retry_hint(state.error))
        elif state.total == 0:
            status.show_message("This server doesn't have any channels available.")
        elif not state.rows:
            status.show_message(f'No channels match "{state.name_filter}".')
        else:
            status.show_message(f"{len(state.rows)} of {state.total} channels")

        option_list = self.query_one("#channel-list", OptionList)
        option_list.clear_options()
        option_list.add_options(
            [
                Option(render_channel_option(channel, depth), disabled=channel.is_category)
                for channel, depth in state.rows
            ]
        )
        self._rows = [channel for channel, _depth in state.rows]

    @on(Input.Changed, "#channel-filter")
    def on_filter_changed(self, event: Input.Changed) -> None:
        if self.controller is not None:
            self.controller.filter_changed(event.value)

    @on(Input.Submitted, "#channel-filter")
    def on_filter_submitted(self, event: Input.Submitted) -> None:
        if self.controller is not None:
            self.controller.debouncer.on_submit(event.value)
        self.query_one("#channel-list", OptionList).focus()

    @on(OptionList.OptionSelected, "#channel-list")
    def on_channel_selected(self, event: OptionList.OptionSelected) -> None:
        idx = event.option_index
        if not 0 <= idx < len(self._rows):
            return
        channel = self._rows[idx]
        if channel.can_open:
            self.notify(f"#{channel.name}: {format_post_count(channel.post_count)} posts")
        else:
            self.notify("This channel has no posts or cannot be opened", severity="warning")

    def action_go_back(self) -> None:
        self.app.pop_screen()

    def action_focus_filter(self) -> None:
        self.query_one("#channel-filter", Input).focus()

    def action_retry(self) -> None:
        if self.controller is not None:
            self.controller.load()


__all__ = ["ChannelListScreen"]
