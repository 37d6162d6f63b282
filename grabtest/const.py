DEFAULT_CONTENT_LENGTH = 1 << 20  # 1 MiB

# Size of each synthetic body chunk written to the transport.
STREAM_CHUNK_SIZE = 4096

ACCEPT_RANGES = "accept-ranges"
CONTENT_LENGTH = "content-length"
CONTENT_RANGE = "content-range"
CONTENT_TYPE = "content-type"
CONTENT_DISPOSITION = "content-disposition"
LAST_MODIFIED = "last-modified"
ALLOW = "allow"

SYNTHETIC_MEDIA_TYPE = "application/octet-stream"
