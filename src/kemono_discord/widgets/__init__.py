"""Widget classes and list renderers for the Kemono Discord browser."""

from kemono_discord.widgets.chrome import ContextFooter, PaginationBar, StatusLine
from kemono_discord.widgets.listing import (
    format_relative_time,
    render_channel_option,
    render_server_option,
)
from kemono_discord.widgets.server_list import ScrollReportingOptionList, ServerChosen

__all__ = [
    "ContextFooter",
    "PaginationBar",
    "ScrollReportingOptionList",
    "ServerChosen",
    "StatusLine",
    "format_relative_time",
    "render_channel_option",
    "render_server_option",
]
