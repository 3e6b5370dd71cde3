"""Centralized message constants for error messages, log lines, and user feedback."""

from __future__ import annotations


class ErrorMessages:
    """Error messages for exceptions and validation failures."""

    # Discord ID Validation Errors
    INVALID_SNOWFLAKE = "Discord snowflake ID must be positive"
    SNOWFLAKE_TOO_LARGE = "Discord snowflake ID exceeds maximum value (2^64)"

    # Config Validation Errors
    INVALID_LOG_LEVEL = "Invalid log level: {level}. Must be one of {valid_levels}"
    INVALID_COMMAND_PREFIX = "Command prefix cannot be empty or contain whitespace"
    DISCORD_TOKEN_REQUIRED = "DISCORD_TOKEN environment variable is required"

    # Audio/Stream Errors
    NO_STREAM_URL_FOR_SONG = "No stream URL found for {source_ref}"

    # Wiring
    BOT_NOT_INITIALIZED = "Bot not initialized. Call set_bot() first."
    CONTAINER_NOT_FOUND = "Container not found on bot instance"


class LogTemplates:
    """Log message templates for structured logging.

    Use these with logger.info(), logger.error(), etc. and pass values as parameters
    for proper log formatting and structured logging support.
    """

    # Session Store
    SESSION_CREATED = "Created session for guild %s (voice=%s, notify=%s)"
    SESSION_REMOVED = "Removed session for guild %s"

    # Mailbox
    MAILBOX_OPERATION_FAILED = "Unhandled failure in guild %s mailbox operation: %r"

    # Voice Lease
    VOICE_ACQUIRED = "Acquired voice for guild %s in channel %s"
    VOICE_RELEASE_FAILED = "Failed to release %s for guild %s"

    # Voice Transport
    VOICE_CONNECTED = "Connected to voice channel %s in guild %s"
    VOICE_DISCONNECTED = "Disconnected from voice in guild %s"
    VOICE_CONNECTION_TIMEOUT = "Timeout connecting to channel %s"
    VOICE_NO_PERMISSION = "No permission to connect to channel %s"
    VOICE_STALE_CLEANUP = "Found stale voice client in guild %s, cleaning up"
    PLAYER_CREATED = "Created audio player for guild %s"
    PLAYER_DESTROYED = "Destroyed audio player for guild %s"
    PLAYER_CALLBACK_ERROR = "Error in playback callback for guild %s: %s"
    PLAYER_EVENT_DISPATCH_FAILED = "Failed to dispatch player event for guild %s"

    # Playback Controller
    SESSION_OPENING = "Opening session for guild %s in voice channel %s"
    SESSION_ABORTED = "Aborted session for guild %s: %s"
    SESSION_TORN_DOWN = "Session for guild %s torn down (%s)"
    SESSION_SHUTDOWN_FAILED = "Failed to shut down session for guild %s"
    STREAM_OPENING = "Opening stream for '%s' in guild %s"
    STREAM_DISCARDED = "Discarded stale stream result for guild %s (token=%s)"
    STREAM_DISCARDED_SHUTDOWN = "Discarded stream for guild %s after shutdown (token=%s)"
    STREAM_CANCELLED = "Cancelled pending stream for guild %s (token=%s)"
    STREAM_CLEANUP_FAILED = "Failed to clean up audio stream"
    SONG_STARTED = "Started playing: %s in guild %s"
    SONG_SKIPPED = "Skipped song: %s in guild %s"
    SONG_FINISHED = "Song finished: %s in guild %s"
    QUEUE_ENQUEUED = "Enqueued song '%s' at position %s in guild %s"
    QUEUE_ENQUEUE_CANCELLED = "Dropped late song '%s' in guild %s: stopped while it was resolving"
    QUEUE_EMPTY = "Queue empty in guild %s (%s)"
    PLAYBACK_PAUSED = "Paused playback in guild %s"
    PLAYBACK_RESUMED = "Resumed playback in guild %s"
    PLAYBACK_ERROR = "Playback error in guild %s for '%s': %s"
    PLAYBACK_ERROR_STALE = "Ignoring stale playback error in guild %s: %s"
    EVENT_IGNORED_NO_SESSION = "Ignoring player event for guild %s: no session"
    EVENT_IGNORED_OTHER_PLAYER = "Ignoring player event for guild %s: player was replaced"
    EVENT_IGNORED_STATE = "Ignoring player event for guild %s in state %s"
    EVENT_IGNORED_SHUTDOWN = "Ignoring player event for guild %s: controller is shut down"
    NOTIFY_FAILED = "Failed to post notification to channel %s"

    # Notifier
    NOTIFY_CHANNEL_NOT_FOUND = "Notification channel %s not found"

    # Resolution/Search
    YTDLP_FAILED_EXTRACT_INFO = "Failed to extract info from %s"
    YTDLP_FAILED_RESOLVE = "Failed to resolve %r"
    YTDLP_NO_STREAM_URL = "No stream URL found for %s"
    YTDLP_RESOLVED = "Resolved %r to '%s'"
    OEMBED_LOOKUP_FAILED = "oEmbed lookup failed for %s: %r"
    OEMBED_TITLE_RESOLVED = "Resolved link %s to search '%s'"

    # Commands
    COMMAND_FAILED = "Command '%s' failed in guild %s"
    COMMAND_REJECTED = "Command '%s' rejected in guild %s: %s"
    COG_LOADED_MUSIC = "Music cog loaded"

    # Application Lifecycle
    BOT_STARTING = "Starting Discord Jukebox in {environment} mode"
    BOT_CONFIG_SUMMARY = "Command prefix %r, max queue size %s"
    FFMPEG_NOT_FOUND = "ffmpeg not found on PATH; songs will fail to play"
    BOT_SETUP = "Setting up bot..."
    BOT_CONTAINER_INITIALIZED = "Container initialized successfully"
    BOT_CONTAINER_INIT_FAILED = "Failed to initialize container: %s"
    BOT_SETUP_COMPLETE = "Bot setup complete"
    BOT_STARTING_RUN = "Starting bot..."
    BOT_STOPPED = "Bot stopped successfully"
    BOT_KEYBOARD_INTERRUPT = "Received keyboard interrupt, shutting down..."
    BOT_FATAL_ERROR = "Fatal error: %s"
    BOT_SHUTTING_DOWN = "Shutting down bot..."
    BOT_CONTAINER_SHUTDOWN = "Container shutdown complete"
    BOT_CONTAINER_SHUTDOWN_ERROR = "Error during container shutdown: %s"
    CONTAINER_CONTROLLER_SHUTDOWN_FAILED = "Failed shutting down playback controller: %r"
    CONTAINER_RESOLVER_CLOSE_FAILED = "Failed closing source resolver: %r"
    BOT_SHUTDOWN_COMPLETE = "Bot shutdown complete"
    BOT_SHUTDOWN_TIMEOUT = "Graceful shutdown timed out after %ss"
    BOT_READY = "Bot ready as %s (%s)"
    BOT_CONNECTED_GUILDS = "Connected to %s guilds"
    BOT_COG_LOADED = "Loaded cog: %s"
    BOT_COG_LOAD_FAILED = "Failed to load cog %s: %s"
    BOT_COMMAND_ERROR = "Command error in '%s': %s"


class DiscordUIMessages:
    """User-facing Discord messages and responses.

    These strings are shown directly to users in Discord channels.
    Keep them concise, friendly, and include appropriate emoji.
    """

    # Playback Notices
    NOW_PLAYING = "🎶 Now playing: {title}"
    ADDED_TO_QUEUE = "➕ Added to queue: {title} (position {position})"
    SKIPPING_BROKEN_SONG = "⚠️ Couldn't play {title}, skipping."
    QUEUE_FINISHED = "✅ Queue finished, leaving the voice channel."

    # Action Messages
    ACTION_SKIPPED = "⏭️ Skipped: **{title}**"
    ACTION_STOPPED = "⏹️ Stopped playback and cleared {count} songs from the queue."
    ACTION_PAUSED = "⏸️ Paused playback."
    ACTION_RESUMED = "▶️ Resumed playback."

    # State Messages
    STATE_NOTHING_PLAYING_OR_PAUSED = "Nothing is playing or already paused."
    STATE_NOTHING_PAUSED = "Nothing is paused."
    STATE_SERVER_ONLY = "This command can only be used in a server."

    # Error Messages
    ERROR_QUERY_REQUIRED = "❌ Tell me what to play, e.g. `{prefix}play never gonna give you up`"
    ERROR_BOT_MISSING_PERMISSIONS = "❌ I need these permissions in your voice channel: {missing}"
    ERROR_COMMAND_FAILED_SEE_LOGS = "❌ Command failed. See logs."
    ERROR_MISSING_ARGUMENT = "❌ Missing argument: {param_name}"

    # Embed Titles
    EMBED_NOW_PLAYING = "🎵 Now Playing"
    EMBED_QUEUE = "📋 Queue ({total} songs)"
    EMBED_QUEUE_MORE = "...and {count} more"
