"""Saves j-archive season and episode pages to disk for the parser to read later."""
import logging
import os
import queue
import random
import threading
from time import sleep

import requests

from . import config
from .document import Document

SEASON_SENTINEL = "FINISHED"


def fetch_page(url, retries=config.FETCH_RETRIES, backoff=config.FETCH_BACKOFF):
    """Returns the body of url, retrying failed requests with exponential backoff.

    Raises:
        requests.exceptions.RequestException: The error of the last attempt, once retries are used up.
    """

    for attempt in range(retries + 1):
        try:
            response = requests.get(url, timeout=config.FETCH_TIMEOUT)
            response.raise_for_status()
            return response.text
        except requests.exceptions.RequestException:
            if attempt == retries:
                raise
            delay = backoff * 2 ** attempt
            logging.warning("Request for {} failed, retrying in {}s".format(url, delay))
            sleep(delay)


def get_current_season_number():
    try:
        document = Document(fetch_page(config.BASE_URL))
    except requests.exceptions.RequestException:
        logging.exception("Exception getting current season number")
        return None

    for link in document.select("a[href]"):
        match = config.CURRENT_SEASON_REGEX.search(document.attr(link, "href"))
        if match:
            return int(match.group(1))
    logging.info("Unable to parse current season from home page.")
    return None


def get_season_episode_links(document):
    """Returns a list of (episode number, game url) for a season page, oldest episode first.

    Season pages list games newest first. The episode number is only in the link text ("#8045, aired ...").
    """

    episode_links = []
    for link in document.select("a[href]"):
        href = document.attr(link, "href")
        if not config.EPISODE_LINK_REGEX.match(href):
            continue
        text = document.text(link)
        number_match = config.EPISODE_NUMBER_REGEX.search(text)
        if not number_match:
            logging.warning("Episode number not found in text: {}".format(text))
            continue
        game_id = config.GAME_ID_REGEX.search(href).group(1)
        episode_links.append((number_match.group(1), config.GAME_URL_TEMPLATE.format(game_id)))
    episode_links.reverse()
    return episode_links


class DownloadWorker(threading.Thread):
    """
    Thread that takes season numbers from a queue and saves every episode page of the season that is not
    already on disk.
    """

    def __init__(self, season_queue, site_folder, delay=config.DOWNLOAD_DELAY):
        threading.Thread.__init__(self)
        self.season_queue = season_queue
        self.site_folder = site_folder
        self.delay = delay
        self.downloaded = 0

    def run(self):
        while True:
            season = self.season_queue.get()
            if season == SEASON_SENTINEL:  # No more seasons are coming
                self.season_queue.task_done()
                self.season_queue.put(SEASON_SENTINEL)  # For next worker to get
                return
            try:
                self.download_season(season)
            finally:
                self.season_queue.task_done()

    def download_season(self, season):
        print("Downloading Season {}".format(season))
        season_folder = os.path.join(self.site_folder, config.SEASON_FOLDER_TEMPLATE.format(season))
        os.makedirs(season_folder, exist_ok=True)

        season_url = config.SEASON_URL_TEMPLATE.format(season)
        try:
            season_document = Document(fetch_page(season_url))
        except requests.exceptions.RequestException:
            logging.exception("Exception getting season {} page".format(season))
            return

        episode_links = get_season_episode_links(season_document)
        print("Found {} episode links in Season {}".format(len(episode_links), season))
        for episode_number, game_url in episode_links:
            game_file = os.path.join(season_folder, "{}.html".format(episode_number))
            if os.path.isfile(game_file):
                continue
            print("Downloading Episode {} from Season {}".format(episode_number, season))
            try:
                self.save_page(game_url, game_file)
            except requests.exceptions.RequestException:
                logging.exception("Exception downloading episode {}".format(episode_number))
            sleep(random.uniform(*self.delay))  # Don't hammer j-archive.
        print("Season {} finished".format(season))

    def save_page(self, url, path):
        markup = fetch_page(url)
        with open(path, "w", encoding="utf-8") as out:
            out.write(markup)
        self.downloaded += 1


class SeasonDownloader:
    """
    Entry point for downloading j-archive seasons.

    Args:
        seasons [int]: Seasons to download. Defaults to the current season.
        site_folder (str): Directory that receives one "season <N>" folder per season.
        threads (int): Number of seasons downloaded at the same time.
    """

    def __init__(self, seasons=None, site_folder=config.SITE_FOLDER, threads=config.MAX_THREADS):
        self.seasons = list(seasons or [])
        self.site_folder = site_folder
        self.threads = threads
        self.season_queue = queue.Queue()
        self.workers = []

    def resolve_seasons(self):
        if self.seasons:
            return self.seasons
        current_season = get_current_season_number()
        if current_season is None:
            logging.warning("Falling back to season {}".format(config.LATEST_SEASON))
            current_season = config.LATEST_SEASON
        return [current_season]

    def start(self):
        os.makedirs(self.site_folder, exist_ok=True)
        seasons = self.resolve_seasons()
        for season in seasons:
            self.season_queue.put(season)
        self.season_queue.put(SEASON_SENTINEL)

        for i in range(min(self.threads, len(seasons))):
            w = DownloadWorker(self.season_queue, self.site_folder)
            w.daemon = True
            w.name = "Download Thread {}".format(i)
            self.workers.append(w)
            w.start()

        print("Using {} threads".format(len(self.workers)))
        for w in self.workers:
            w.join()
        downloaded = sum(w.downloaded for w in self.workers)
        logging.info("Downloaded {} episodes".format(downloaded))
        return downloaded
