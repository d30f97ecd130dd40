"""Pushed screens."""

from kemono_discord.screens.channels import ChannelListScreen

__all__ = ["ChannelListScreen"]
