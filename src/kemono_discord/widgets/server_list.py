"""OptionList variant that reports scrolling for infinite-scroll lists."""

from __future__ import annotations

from textual.message import Message
from textual.widgets import OptionList

from kemono_discord.models import DiscordServer


class ServerChosen(Message):
    """A server was picked from a list; the app opens its channels."""

    def __init__(self, server: DiscordServer) -> None:
        super().__init__()
        self.server = server


class ScrollReportingOptionList(OptionList):
    """An OptionList that posts ``Scrolled`` whenever its vertical offset changes.

    Offsets are in rows, so consumers compare against a threshold in rows.
    """

    class Scrolled(Message):
        """Vertical scroll position changed."""

        def __init__(
            self,
            option_list: ScrollReportingOptionList,
            scroll_y: float,
            max_scroll_y: float,
        ) -> None:
            super().__init__()
            self.option_list = option_list
            self.scroll_y = scroll_y
            self.max_scroll_y = max_scroll_y

        @property
        def control(self) -> ScrollReportingOptionList:
            return self.option_list

    def watch_scroll_y(self, old_value: float, new_value: float) -> None:
        super().watch_scroll_y(old_value, new_value)
        if new_value != old_value:
            self.post_message(self.Scrolled(self, new_value, self.max_scroll_y))


__all__ = ["ScrollReportingOptionList", "ServerChosen"]
