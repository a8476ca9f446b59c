# Header of every container, "CTENFDAM"
HEADER_MAGIC = b"CTENFDAM"
HEADER_GAP_SIZE = 2
LENGTH_FIELD_SIZE = 4
# 4-byte CRC32 followed by a 5-byte gap
CRC_GAP_SIZE = 9

# AES-128 key embedded in the desktop client, "hzHRAmso5kInbaxW"
CORE_KEY = bytes.fromhex("687A4852416D736F356B496E62617857")
KEY_XOR_MASK = 0x64
KEY_PREFIX = b"neteasecloudmusic"

FLAC_MAGIC = b"fLaC"

NCM_FILE_EXTENSION = ".ncm"
DEFAULT_OUTPUT_EXTENSION = ".flac"
TEMP_FILE_EXTENSION = ".tmp"
TEMP_FILE_TEMPLATE = "{stem}.ncmconv_{random_uuid}{extension}"
