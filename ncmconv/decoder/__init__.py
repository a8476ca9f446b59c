from .cipher import (
    build_keystream_table,
    decrypt_audio,
    encrypt_audio,
    remap_box,
    schedule_key,
)
from .constants import *
from .container import parse_container
from .decoder import NcmDecoder
from .enums import *
from .exceptions import *
from .key import derive_key, encrypt_key
from .transcoder import NcmTranscoder
from .types import *
