"""Tab panes of the main screen."""

from kemono_discord.panes.browse import ServerBrowsePane
from kemono_discord.panes.search import ServerSearchPane

__all__ = [
    "ServerBrowsePane",
    "ServerSearchPane",
]
