"""Internal constants shared across the library."""

USER_AGENT = "fleetrecon/1"

# ------------------------------------------------------------------
# Realtime Database streaming protocol
# ------------------------------------------------------------------

STREAM_EVENT_PUT = "put"
STREAM_EVENT_PATCH = "patch"
STREAM_EVENT_KEEP_ALIVE = "keep-alive"
# Server closes the stream: security rules no longer allow the read.
STREAM_EVENT_CANCEL = "cancel"
# Server closes the stream: the auth token expired or was revoked.
STREAM_EVENT_AUTH_REVOKED = "auth_revoked"
