"""Shared defaults for uploadctl.

Kept free of imports so both the config layer and the upload core can use them.
"""

# Fixed chunk size for every session (50 MiB)
DEFAULT_CHUNK_SIZE = 50 * 1024 * 1024

# HTTP timeout for a single request; one chunk must fit in it
DEFAULT_HTTP_TIMEOUT_SECONDS = 300

# Content type sent with init metadata when it cannot be guessed
DEFAULT_CONTENT_TYPE = "video/mp4"
