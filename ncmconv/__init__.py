from .converter import NcmConverter
from .decoder import NcmDecoder, NcmTranscoder
from .watcher import FolderWatcher, WatchHandle

__version__ = "1.0.0"
