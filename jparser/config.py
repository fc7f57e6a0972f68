"""Settings shared by the downloader, the season pipeline and the episode parser.

Everything here is immutable for the life of the process. Values the user may want to change per run are
overridden through run.py arguments rather than edited here.
"""
import os
import re

BASE_URL = "http://j-archive.com"
SEASON_URL_TEMPLATE = BASE_URL + "/showseason.php?season={}"
GAME_URL_TEMPLATE = BASE_URL + "/showgame.php?game_id={}"

SITE_FOLDER = "season-archive"  # Downloaded pages: <SITE_FOLDER>/season <N>/<epNum>.html
SEASON_FOLDER_TEMPLATE = "season {}"
CSV_FOLDER = "parsed-csv"
CSV_FILE_TEMPLATE = "j-archive-season-{}.csv"

LATEST_SEASON = 41  # Used when the current season can't be read from the home page.
MAX_THREADS = (os.cpu_count() or 4) * 2

FETCH_TIMEOUT = 30
FETCH_RETRIES = 3
FETCH_BACKOFF = 2  # Seconds, doubled after every failed attempt.
DOWNLOAD_DELAY = (2, 6)  # Seconds to wait between two episode downloads of a season.

CSV_HEADER = ["epNum", "airDate", "round_name", "category", "value", "daily_double", "question", "answer"]
MISSING_VALUE = "-100"
"""
Placeholder for a grid clue with an empty value cell. It can't be told apart from a real negative amount, but
existing consumers of the CSV files expect it.
"""

EPISODE_NUMBER_REGEX = re.compile(r'''#(\d{1,4})''')
AIR_DATE_REGEX = re.compile(r'''\d{4}-\d{2}-\d{2}''')
"""
Both are matched against the page <title>, e.g. "J! Archive - Show #8045, aired 2019-09-18".
"""

EPISODE_LINK_REGEX = re.compile(r'''^(https?://(www\.)?j-archive\.com/)?showgame\.php\?game_id=\d+$''')
GAME_ID_REGEX = re.compile(r'''game_id=(\d+)''')
CURRENT_SEASON_REGEX = re.compile(r'''showseason\.php\?season=(\d{1,2})''')
SEASON_FOLDER_REGEX = re.compile(r'''\d+''')
