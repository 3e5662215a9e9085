import struct


# Prologue layout
PROLOGUE_SIZE = 12                        # bytes [0, 12) are not interpreted
HEADER_SIZE_STRUCT = struct.Struct("<I")  # bytes [12, 16): header length
HEADER_OFFSET = PROLOGUE_SIZE + HEADER_SIZE_STRUCT.size  # 16

# Numeric bounds
MAX_U32 = (1 << 32) - 1
MAX_U64 = (1 << 64) - 1
MAX_U64_DIGITS = len(str(MAX_U64))  # 20
MAX_SAFE_INTEGER = (1 << 53) - 1  # JSON-safe integer limit inherited by the format

# Integrity algorithms
ALGO_SHA256 = "SHA256"

# Safety bounds
DEFAULT_MAX_HEADER_SIZE = 128 * 1024 * 1024  # 128 MiB
COPY_CHUNK_SIZE = 1_048_576  # 1 MiB

EXECUTABLE_MODE = 0o755
