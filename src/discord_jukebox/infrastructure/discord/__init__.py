"""Discord integration: bot, cogs, voice transport and notifier."""
