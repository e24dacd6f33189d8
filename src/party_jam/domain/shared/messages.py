"""Centralized message constants for error messages, validation, and logging."""

from __future__ import annotations


class ErrorMessages:
    """Error messages for exceptions and validation failures."""

    # Request Validation Errors
    FIELD_REQUIRED = "{field_name} is required"
    FIELD_CANNOT_BE_EMPTY = "{field_name} cannot be empty"
    INVALID_FIELD_VALUE = "{field_name} has an invalid value: {value!r}"
    INVALID_VOTE = "vote must be UP, DOWN, or NONE"
    INVALID_CONTEXT = "context must be QUEUE or TESTING"
    INVALID_SETTING_KEY = "Unknown setting '{key}'. Must be one of {valid_keys}"
    INVALID_SETTING_VALUE = "Setting '{key}' expects a {expected} value"

    # Lookup Errors
    PARTY_NOT_FOUND = "Party not found"
    MEMBER_NOT_FOUND = "User is not a member of this party"
    JOIN_CODE_NOT_FOUND = "No party matches join code '{code}'"
    TRACK_NOT_FOUND = "Track '{track_id}' not found in {context}"
    DUPLICATE_PARTY = "Party '{party_id}' already exists"

    # Permission Errors
    NOT_HOST = "Only the host can {action}"
    SUGGESTIONS_DISABLED = "Suggestions are disabled for this party"
    EXPLICIT_CONTENT_BLOCKED = "Explicit tracks are not allowed at a kid-friendly party"

    # State Errors
    PARTY_NOT_LIVE = "Party must be live to {action}"
    PARTY_ENDED = "Party has already ended"
    INVALID_TRANSITION = "Cannot transition party from {current} to {target}"
    TRACK_ALREADY_PRESENT = "Track '{track_id}' is already queued, playing, or under test"
    TRACK_ALREADY_DECIDED = "Track '{track_id}' was already suggested and ended as {status}"

    # Join Codes
    JOIN_CODE_EXHAUSTED = "Could not allocate a unique join code after {attempts} attempts"

    # Timing
    INVALID_DELAY = "Timer delay cannot be negative"

    # Settings
    INVALID_LOG_LEVEL = "Invalid log level: {level}. Must be one of {valid_levels}"
    SAMPLE_BOUNDS_INVERTED = "sample_min must not exceed sample_cap"
    SUGGEST_WINDOWS_INVERTED = "suggest_expand_at_ms must be earlier than suggest_expire_at_ms"

    # Container
    GATEWAY_NOT_CONFIGURED = "Broadcast gateway not configured. Pass one to create_container()."


class LogTemplates:
    """Log message templates.

    Use these with logger.info(), logger.debug(), etc. and pass values as
    parameters so formatting is deferred to the logging framework.
    """

    # Application Lifecycle
    APP_STARTING = "Party Jam core starting (environment={environment})"
    APP_READY = "Party Jam core ready, waiting for transport"
    APP_STOPPED = "Party Jam core stopped"
    APP_KEYBOARD_INTERRUPT = "Received keyboard interrupt, shutting down"
    APP_FATAL_ERROR = "Fatal error: %s"
    LOGGING_CONFIG_FALLBACK = "Could not load %s, falling back to basic config"

    # Party Lifecycle
    PARTY_CREATED = "Created party %s for host %s (join code %s)"
    PARTY_STARTED = "Party %s is now live"
    PARTY_ENDED = "Party %s ended"
    JOIN_CODE_COLLISION = "Join code %s already taken, retrying"
    JOIN_CODE_REGENERATED = "Regenerated join code for party %s"

    # Members
    MEMBER_JOINED = "User %s joined party %s"
    MEMBER_REJOINED = "User %s rejoined party %s"
    PRESENCE_CHANGED = "Party %s active members: %s"

    # Settings
    SETTING_UPDATED = "Party %s setting %s updated to %r"

    # Queue
    QUEUE_SEEDED = "Seeded %s tracks into party %s (%s skipped)"
    QUEUE_REMOVED_BY_HOST = "Host removed track %s from party %s"
    QUEUE_REMOVE_NOOP = "Track %s not in queue for party %s, nothing removed"
    NOW_PLAYING_SET = "Now playing %s in party %s"

    # Voting
    VOTE_RECORDED = "Vote %s on %s (%s) by %s in party %s: up=%s down=%s active=%s"
    VOTE_THRESHOLD_REMOVED = "Track %s removed from party %s by downvotes (%s/%s active)"
    VOTE_THRESHOLD_PROMOTED = "Suggestion %s promoted in party %s (%s/%s active)"

    # Suggestions
    SUGGESTION_CREATED = "Suggestion %s in party %s sampled to %s of %s active members"
    SUGGESTION_EXPANDED = "Suggestion %s in party %s expanded to %s members"
    SUGGESTION_EXPIRED = "Suggestion %s in party %s expired"
    SUGGESTION_TIMER_STALE = "Ignoring %s timer for suggestion %s in party %s (stale)"
    SUGGESTION_TIMERS_CANCELLED = "Cancelled %s pending suggestion timers"

    # Timers
    TIMER_CALLBACK_ERROR = "Error in scheduled callback %s"

    # Event Bus / Broadcast
    EVENT_RELAYED = "Relayed %s to party %s"
    EVENT_RELAYED_SAMPLED = "Relayed %s to %s sampled users in party %s"
    EVENT_HANDLER_ERROR = "Error in handler for %s: %s"
    ERROR_REPORTED = "Reporting error %s to party %s: %s"
