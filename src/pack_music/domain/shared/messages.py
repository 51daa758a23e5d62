"""Centralized message constants for error messages, log lines, and user feedback."""

from __future__ import annotations


class ErrorMessages:
    """Error messages for exceptions and validation failures."""

    # Track Validation Errors
    EMPTY_TRACK_ID = "Track ID cannot be empty"

    # Settings Validation Errors
    INVALID_DATABASE_URL = "Database URL must start with sqlite://"
    INVALID_LOG_LEVEL = "Invalid log level: {level}. Must be one of {valid_levels}"
    INVALID_SNOWFLAKE_LIST = "Expected comma-separated Discord IDs, got {value!r}"

    # Audio/Stream Errors
    NO_URL_IN_INFO_DICT = "No stream URL found in info dict"
    NO_RESULTS_FOR_QUERY = "No results for {query!r}"

    # Lifecycle Errors
    DISCORD_TOKEN_REQUIRED = "DISCORD__BOT_TOKEN environment variable is required"
    CONTAINER_NOT_FOUND = "Container not found on bot instance"


class LogTemplates:
    """Log message templates.

    Use these with logger.info(), logger.error(), etc. and pass values as parameters
    so formatting stays lazy.
    """

    # Database Lifecycle
    DATABASE_INITIALIZED = "Database initialized at %s"
    DATABASE_CLOSED = "Database closed"

    # Guild Profiles
    PROFILE_CACHE_HIT = "Guild profile cache hit for %s"
    PROFILE_SAVED = "Saved guild profile for %s"
    PROFILE_FETCH_FAILED = "Failed to load guild profile for %s, using defaults: %r"
    PROFILE_CACHE_INVALIDATED = "Invalidated %d cached guild profile(s)"

    # Voice Operations
    VOICE_CONNECTED = "Connected to voice channel %s in %s"
    VOICE_DISCONNECTED = "Disconnected from voice in guild %s"
    VOICE_MOVED = "Moved to voice channel %s"
    VOICE_CONNECTION_TIMEOUT = "Timeout connecting to channel %s"
    VOICE_NO_PERMISSION = "No permission to connect to channel %s"
    VOICE_CLIENT_ERROR = "Client error connecting: %r"
    VOICE_NOT_CONNECTED = "Not connected to voice in guild %s"
    VOICE_PLAY_FAILED = "Voice client refused to play in guild %s: %r"
    VOICE_AFTER_ERROR = "Player reported an error in guild %s: %r"

    # Subscription Lifecycle
    SUBSCRIPTION_CREATED = "Created subscription for guild %s (volume=%s, autoplay=%s)"
    SUBSCRIPTION_DESTROYED = "Destroyed subscription for guild %s"
    SUBSCRIPTION_EXISTS = "Guild %s already has a subscription"
    SUBSCRIPTION_LOCK_TIMEOUT = "Lock wait for guild %s exceeded %.1fs"
    SUBSCRIPTION_STALE_EVENT = "Ignoring track-end for generation %s in guild %s (current=%s)"
    SUBSCRIPTION_EVENT_FAILED = "Handling track-end failed in guild %s"
    SUBSCRIPTION_ADVANCE_STOPPED = "Advance after track end in guild %s stopped: %s"
    REGISTRY_AUTO_LEAVE = "Voice channel empty in guild %s, leaving"
    REGISTRY_SHUTDOWN = "Tearing down %d subscription(s)"

    # Playback Operations
    PLAYBACK_STARTED = "Started playing '%s' in guild %s (offset=%ss)"
    PLAYBACK_REPEAT_SONG = "Repeating '%s' in guild %s"
    PLAYBACK_REPEAT_QUEUE = "Recycled %d track(s) from history in guild %s"
    PLAYBACK_STOPPED = "Stopped playback in guild %s"
    PLAYBACK_PAUSED = "Paused playback in guild %s"
    PLAYBACK_RESUMED = "Resumed playback in guild %s"
    PLAYBACK_IDLE = "Queue exhausted in guild %s"
    PLAYBACK_VOLUME = "Volume set to %s in guild %s"
    PLAYBACK_SEEK = "Seeking '%s' to %ss in guild %s"
    PLAYBACK_SEEK_FALLBACK = "Re-resolve for restart failed in guild %s, reusing last stream: %r"
    PLAYBACK_RESOLVE_FAILED = "Could not open '%s' in guild %s (attempt %d/%d): %r"
    PLAYBACK_GAVE_UP = "Giving up after %d failed attempt(s) in guild %s"
    PLAYBACK_START_FAILED = "Starting '%s' failed in guild %s, going idle"
    PLAYBACK_FILTERS = "Filters set to [%s] in guild %s"

    # Queue Operations
    QUEUE_ENQUEUED = "Enqueued %d track(s) at position %s in guild %s"
    QUEUE_JUMPED = "Jumped to '%s' in guild %s"
    QUEUE_PUSHED = "Moved '%s' to the front in guild %s"
    QUEUE_SWAPPED = "Swapped positions %s and %s in guild %s"
    QUEUE_UNDONE = "Removed '%s' from the end of the queue in guild %s"
    QUEUE_SHUFFLED = "Shuffled %d track(s) in guild %s"
    QUEUE_PREVIOUS = "Went back to '%s' in guild %s"
    REPEAT_MODE_CHANGED = "Repeat mode changed to %s in guild %s"
    AUTOPLAY_CHANGED = "Autoplay %s in guild %s"

    # Autoplay
    AUTOPLAY_PICKED = "Autoplay picked '%s' after '%s' in guild %s"
    AUTOPLAY_NOTHING = "Autoplay found nothing related to '%s' in guild %s"
    AUTOPLAY_FAILED = "Autoplay lookup failed for '%s': %r"

    # Prefetch
    PREFETCH_STARTED = "Prefetching '%s'"
    PREFETCH_READY = "Prefetched '%s'"
    PREFETCH_STALE = "Discarding prefetched stream for '%s', no longer at the head"
    PREFETCH_FAILED = "Prefetch failed for '%s': %r"
    PREFETCH_HIT = "Using prefetched stream for '%s'"
    PREFETCH_EXPIRED = "Prefetched stream for '%s' expired"

    # Resolution/Search
    YTDLP_FAILED_EXTRACT_INFO = "Failed to extract info from %s"
    YTDLP_FAILED_SEARCH = "Failed to search for %r"
    LOOKUP_FAILED = "Lookup failed for %r: %r"
    YTDLP_INVALID_INFO = "yt-dlp returned unusable data for %s: %s"
    YTDLP_PLAYLIST_EXPANDED = "Expanded playlist %s into %d track(s)"

    # Events
    EVENT_HANDLER_FAILED = "Event handler %s failed for %s"

    # Application Lifecycle
    BOT_STARTING = "Starting The Pack music bot in %s mode"
    BOT_SETUP = "Setting up bot..."
    BOT_CONTAINER_INITIALIZED = "Container initialized successfully"
    BOT_SETUP_COMPLETE = "Bot setup complete"
    BOT_KEYBOARD_INTERRUPT = "Received keyboard interrupt, shutting down..."
    BOT_FATAL_ERROR = "Fatal error: %s"
    BOT_SHUTTING_DOWN = "Shutting down bot..."
    BOT_CONTAINER_SHUTDOWN_ERROR = "Error during container shutdown: %s"
    BOT_SHUTDOWN_COMPLETE = "Bot shutdown complete"
    BOT_READY = "Bot ready as %s (%s)"
    BOT_CONNECTED_GUILDS = "Connected to %s guilds"
    BOT_GUILD_REMOVED = "Left guild: %s (%s)"
    BOT_SHUTDOWN_TIMEOUT = "Shutdown did not finish within %.0fs"
    BOT_CONTAINER_INIT_FAILED = "Container initialization failed: %s"
    BOT_COG_LOADED = "Loaded cog: %s"
    BOT_COG_LOAD_FAILED = "Failed to load cog %s: %s"
    BOT_SYNCED_GUILD = "Synced %s commands to guild %s"
    BOT_SYNCED_GLOBAL = "Synced %s commands globally"
    BOT_SYNC_FAILED = "Failed to sync commands: %s"
    BOT_SLASH_COMMAND_ERROR = "Slash command error in '%s': %s"
    BOT_ERROR_MESSAGE_SEND_FAILED = "Failed to send error message to user"
    COMMAND_REJECTED = "Command rejected with %s: %s"
    EVENT_TRACK_STARTED = "[guild %s] now playing %r (offset=%ss, autoplay=%s)"
    EVENT_QUEUE_EXHAUSTED = "[guild %s] queue exhausted after %r"
    EVENT_PLAYBACK_FAILED = "[guild %s] playback stopped after %d failed attempt(s): %s"


class DiscordUIMessages:
    """User-facing Discord messages and responses.

    These strings are shown directly to users in Discord interactions.
    Keep them concise and friendly.
    """

    # Connection
    ACTION_JOINED = "🔊 Joined **{channel}**."
    ACTION_LEFT = "👋 Left the voice channel."

    # Queue
    ACTION_ENQUEUED = "🎵 Queued **{title}** at position {position}."
    ACTION_ENQUEUED_NOW = "▶️ Now playing **{title}**."
    ACTION_ENQUEUED_PLAYLIST = "🎶 Queued {count} tracks starting at position {position}."
    ACTION_ENQUEUED_PLAYLIST_NOW = "🎶 Queued {count} tracks, now playing **{title}**."
    ACTION_JUMPED = "⏩ Jumped to **{title}**."
    ACTION_PUSHED = "⏫ **{title}** will play next."
    ACTION_SWAPPED = "🔃 Swapped **{first}** and **{second}**."
    ACTION_UNDONE = "↩️ Removed **{title}** from the end of the queue."
    ACTION_SHUFFLED = "🔀 Shuffled {count} tracks."
    ACTION_PREVIOUS = "⏮️ Back to **{title}**."

    # Playback
    ACTION_SKIPPED = "⏭️ Skipped **{title}**."
    ACTION_STOPPED = "⏹️ Stopped playback and cleared the queue."
    ACTION_PAUSED = "⏸️ Paused playback."
    ACTION_RESUMED = "▶️ Resumed playback."
    ACTION_SEEKED = "⏩ Seeked to {timestamp}."
    ACTION_VOLUME = "🔊 Volume set to {volume}%."
    ACTION_REPEAT = "🔁 Repeat mode: **{mode}**"
    ACTION_AUTOPLAY = "📻 Autoplay **{state}**."
    ACTION_FILTERS = "🎛️ Active filters: {filters}"

    # Settings
    SETTINGS_VOLUME_SAVED = "⚙️ Default volume for this server is now {volume}%."
    SETTINGS_AUTOPLAY_SAVED = "⚙️ Autoplay for new sessions is now **{state}**."
    SETTINGS_INFO = "⚙️ Default volume: {volume}% · Autoplay: {autoplay}"

    # Errors from subscription operations
    ERROR_INVALID_POSITION = "❌ Position {position} is not in the queue ({length} tracks)."
    ERROR_NO_OP = "That wouldn't change anything."
    ERROR_EMPTY_QUEUE = "The queue is empty."
    ERROR_NO_HISTORY = "There is no previous track."
    ERROR_NO_ACTIVE_TRACK = "Nothing is playing."
    ERROR_OUT_OF_RANGE = "❌ {value} is out of range."
    ERROR_NOT_PLAYING = "Nothing is playing."
    ERROR_STREAM_FAILED = "❌ Couldn't open any of the next tracks, playback stopped."
    ERROR_BUSY = "⏳ Busy, try again in a moment."
    ERROR_NOT_CONNECTED = "I'm not connected to a voice channel here. Use `/join` first."
    ERROR_TRACK_NOT_FOUND = "Couldn't find a track for: {query}"
    ERROR_COULD_NOT_JOIN_VOICE = "I couldn't join your voice channel."
    ERROR_INVALID_TIMESTAMP = "❌ Couldn't read `{value}` as a timestamp."
    ERROR_COMMAND_FAILED = "❌ Command failed. See logs."
    ERROR_MISSING_PERMISSIONS = "❌ You don't have permission to use this command."

    # State Messages
    STATE_QUEUE_EMPTY = "Queue is empty."
    STATE_SERVER_ONLY = "This command can only be used in a server."
    STATE_NEED_TO_BE_IN_VOICE = "You need to be in a voice channel first."
    STATE_VERIFY_VOICE_FAILED = "Could not verify your voice state."

    # Embed Titles
    EMBED_NOW_PLAYING = "🎵 Now Playing"
    EMBED_QUEUE = "📋 Queue ({total_tracks} tracks) · Page {page}/{total_pages}"
    EMBED_FOOTER = "The Pack"


class EmojiConstants:
    """Emoji constants for consistent visual feedback."""

    PLAY = "▶️"
    PAUSE = "⏸️"
    BUFFERING = "⏳"
    IDLE = "⏹️"
    REPEAT = "🔁"
    REPEAT_ONE = "🔂"
    AUTOPLAY = "📻"
    SPEAKER = "🔊"
    FILTERS = "🎛️"
