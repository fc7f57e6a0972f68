from .document import Document
from .download import SeasonDownloader
from .exceptions import NoRoundsFoundError
from .parser import EpisodeExtractor, Record, RoundKind, parse_episode_page
from .pipeline import JArchiveParser
from .sink import Sink
from .values import normalize_value
