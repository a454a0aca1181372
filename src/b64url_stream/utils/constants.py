# SENTINEL object để báo end-of-stream; so sánh bằng "is"
SENTINEL = object()

# URL-safe alphabet (RFC 4648 §5). '=' never travels on the wire.
URLSAFE_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789-_"
URLSAFE_CHARS = frozenset(URLSAFE_ALPHABET)
PAD_CHAR = "="

LINE_TERMINATOR = "\n"

DEFAULT_BUFFER_SIZE = 4096
DEFAULT_QUEUE_SIZE = 8
DEFAULT_WRAP = 76
DEFAULT_CHARSET = "utf-8"

# Channel item contract:
#   Chunk | str      -> data, owned by the receiver after get()
#   SENTINEL         -> producer finished, everything before it was delivered
#   failure (set on the channel, not queued) -> upstream aborted
