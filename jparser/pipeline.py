import logging
import os
import queue
import threading
from datetime import datetime

from . import config
from .document import Document
from .exceptions import NoRoundsFoundError, PageParseError, SiteFolderError
from .parser import EpisodeExtractor

JOB_SENTINEL = "FINISHED"


def get_all_seasons(site_folder=config.SITE_FOLDER):
    """Returns the season numbers of the "season <N>" folders in site_folder, in ascending order."""
    seasons = []
    for entry in os.scandir(site_folder):
        if not entry.is_dir():
            continue
        match = config.SEASON_FOLDER_REGEX.search(entry.name)
        if match:
            seasons.append(int(match.group(0)))
    return sorted(seasons)


def _episode_sort_key(file_name):
    stem = os.path.splitext(file_name)[0]
    return (0, int(stem), file_name) if stem.isdigit() else (1, 0, file_name)


def list_episode_files(season_dir):
    """Returns paths of the episode pages of a season folder, in episode number order."""
    file_names = [entry.name for entry in os.scandir(season_dir) if entry.is_file() and entry.name.endswith(".html")]
    return [os.path.join(season_dir, name) for name in sorted(file_names, key=_episode_sort_key)]


class ParseWorker(threading.Thread):
    """
    Thread that reads an episode page from disk, extracts its records, and hands them to the writer through
    out_queue as (season, index, records). records is None when the page could not be parsed.
    """

    def __init__(self, job_queue, out_queue, extractor):
        threading.Thread.__init__(self)
        self.job_queue = job_queue
        self.out_queue = out_queue
        self.extractor = extractor

    def run(self):
        while True:
            job = self.job_queue.get()
            if job == JOB_SENTINEL:  # No more episodes are coming
                logging.debug("Got job sentinel. Returning")
                self.job_queue.task_done()
                self.job_queue.put(JOB_SENTINEL)  # For next worker to get
                return

            season, index, path = job
            records = None
            try:
                records = self.parse_episode_file(path)
            except Exception:
                logging.exception("Unexpected error parsing episode {}".format(path))
            finally:
                # The writer waits for a result from every queued episode, failed or not.
                self.out_queue.put((season, index, records))
                self.job_queue.task_done()

    def parse_episode_file(self, path):
        logging.info("Parsing episode at {}".format(path))
        try:
            document = Document.from_file(path)
        except OSError:
            logging.exception("Exception reading episode page at {}".format(path))
            return None
        except PageParseError as e:
            logging.warning("Error parsing episode {}: {}".format(path, e))
            return None
        try:
            return self.extractor.extract(document)
        except NoRoundsFoundError:
            logging.warning("Error parsing episode {}: no rounds found".format(path))
            return None


class JArchiveParser:
    """
    Provides entry point to parse every downloaded episode and save the records season by season.

    Args:
        sink: Object responsible for saving the records. Should expose 'init_connection', 'save(season, records)'
            and 'cleanup' methods.
        seasons [int]: Seasons to parse. Defaults to every season folder found in site_folder.

    Attributes:
        job_queue (queue.Queue): Shared among worker threads and populated with (season, index, path) jobs.

        out_queue (queue.Queue): Populated with parse results by ParseWorker threads, consumed only by mainloop.

        buffers {int: {int: [Record]}}: Results received so far, per season and episode index. A season is saved
            and dropped from here once all of its episodes are in.
    """

    def __init__(self, sink, seasons=None, site_folder=config.SITE_FOLDER, threads=config.MAX_THREADS,
                 extractor=None):
        self.sink = sink
        self.seasons = seasons
        self.site_folder = site_folder
        self.threads = threads
        self.extractor = extractor or EpisodeExtractor()
        self.job_queue = queue.Queue()
        self.out_queue = queue.Queue()
        self.workers = []

        self.expected = {}
        self.buffers = {}
        self.failed = []
        self.record_count = 0
        self.saved_seasons = []

    def queue_jobs(self):
        """Queue a job per episode file.

        Raises:
            SiteFolderError: If no seasons were given and site_folder can't be listed.
        """

        try:
            seasons = self.seasons or get_all_seasons(self.site_folder)
        except OSError as e:
            raise SiteFolderError("Error getting seasons from {}: {}".format(self.site_folder, e)) from e
        for season in seasons:
            season_dir = os.path.join(self.site_folder, config.SEASON_FOLDER_TEMPLATE.format(season))
            try:
                paths = list_episode_files(season_dir)
            except OSError:
                logging.exception("Error reading season directory {}".format(season_dir))
                continue
            print("Starting season {}: {} episodes".format(season, len(paths)))
            self.expected[season] = len(paths)
            self.buffers[season] = {}
            for index, path in enumerate(paths):
                self.job_queue.put((season, index, path))
        self.job_queue.put(JOB_SENTINEL)

    def init_workers(self):
        for i in range(self.threads):
            w = ParseWorker(self.job_queue, self.out_queue, self.extractor)
            w.daemon = True
            w.name = "Parse Thread {}".format(i)
            self.workers.append(w)
            w.start()

    def start(self):
        self.sink.init_connection()
        try:
            self.queue_jobs()
            for season in [s for s, count in self.expected.items() if count == 0]:
                self.flush_season(season)
            self.init_workers()
            self.mainloop()
        finally:
            self.sink.cleanup()

    def mainloop(self):
        starttime = datetime.now()
        while self.buffers:
            try:
                season, index, records = self.out_queue.get(timeout=1)
            except queue.Empty:
                if not any(w.is_alive() for w in self.workers) and self.out_queue.empty():
                    logging.error("Workers exited with seasons {} incomplete".format(sorted(self.buffers)))
                    break
                continue
            self.buffers[season][index] = records
            if len(self.buffers[season]) == self.expected[season]:
                self.flush_season(season)

        logging.info("Finished parsing in {}".format(datetime.now() - starttime))
        self.on_finished()

    def flush_season(self, season):
        """Save a completed season, its episodes in the same order they were queued."""
        results = self.buffers.pop(season)
        records = []
        for index in sorted(results):
            if results[index] is None:
                self.failed.append((season, index))
                continue
            records.extend(results[index])
        self.sink.save(season, records)
        self.record_count += len(records)
        self.saved_seasons.append(season)
        print("Season {} complete".format(season))

    def on_finished(self):
        print("Parsing complete.")
        print("{:,} clues were collected from {} seasons, {} episodes failed.".format(
            self.record_count, len(self.saved_seasons), len(self.failed)))
