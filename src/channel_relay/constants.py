"""Centralized constants for Channel Relay."""

# Discord
MAX_DISCORD_MESSAGE_LENGTH = 2000
MAX_CHANNEL_NAME_PREFIX = 30

# Hosts whose links Discord renders as inline media previews
CDN_LINK_PATTERN = r"https://(?:cdn\.discordapp\.com|media\.discordapp\.net)/\S+"

# Relay defaults
DEFAULT_STATE_PATH = "data/mirror_config.json"
DEFAULT_WEBHOOK_NAME = "Mirror Bot"
UNKNOWN_AUTHOR_NAME = "Unknown"
