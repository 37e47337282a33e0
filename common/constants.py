"""Project-wide constants (delimiters, poll intervals, transfer sizes)."""

PATH_DELIMITER: str = "/"
ROOT_SEGMENT_NAME: str = "/"

PROGRESS_POLL_INTERVAL_SECONDS: float = 0.2

TRANSFER_CHUNK_SIZE_BYTES: int = 64 * 1024  # 64 KiB per read/write step

MAX_OBJECT_KEY_LENGTH: int = 1024
MAX_CONTAINER_NAME_LENGTH: int = 63

DEFAULT_LINK_EXPIRY_SECONDS: int = 15 * 60

UPLOAD_PATH_SEPARATOR: str = ";"
