"""GuildLens: community health analytics for Discord guilds."""

__version__ = "0.1.0"
