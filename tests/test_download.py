#!/usr/bin/env python3
import os
import queue
import shutil
import tempfile
import unittest
import mock
import requests

from jparser.document import Document
from jparser.download import (DownloadWorker,
        SeasonDownloader,
        SEASON_SENTINEL,
        fetch_page,
        get_current_season_number,
        get_season_episode_links
        )

SEASON_PAGE = """<html><body><table>
<tr><td align="left" valign="top" style="width:140px"><a href="showgame.php?game_id=6530">#8045, aired&#160;2019-09-18</a></td></tr>
<tr><td align="left" valign="top" style="width:140px"><a href="http://www.j-archive.com/showgame.php?game_id=6529">#8044, aired&#160;2019-09-17</a></td></tr>
<tr><td><a href="showgame.php?game_id=6528">Pilot episode</a></td></tr>
<tr><td><a href="showplayer.php?player_id=1">Amy Example</a></td></tr>
</table></body></html>"""

HOME_PAGE = """<html><body><table class="fullpageheight"><tr><td>
<a href="showseason.php?season=36">Season 36</a></td></tr></table></body></html>"""


def response(text="", status_code=200):
    resp = mock.Mock()
    resp.text = text
    resp.status_code = status_code
    if status_code >= 400:
        resp.raise_for_status.side_effect = requests.exceptions.HTTPError(str(status_code))
    return resp


@mock.patch('jparser.download.sleep')
@mock.patch('jparser.download.requests.get')
class TestFetchPage(unittest.TestCase):

    def test_returns_body(self, mock_get, mock_sleep):
        mock_get.return_value = response("<html></html>")
        self.assertEqual(fetch_page("http://j-archive.com"), "<html></html>")
        mock_sleep.assert_not_called()

    def test_retries_with_backoff(self, mock_get, mock_sleep):
        mock_get.side_effect = [requests.exceptions.ConnectionError(), response(status_code=503), response("ok")]
        self.assertEqual(fetch_page("http://j-archive.com", retries=3, backoff=2), "ok")
        self.assertEqual([c[0][0] for c in mock_sleep.call_args_list], [2, 4])

    def test_raises_when_retries_exhausted(self, mock_get, mock_sleep):
        mock_get.side_effect = requests.exceptions.ConnectionError()
        with self.assertRaises(requests.exceptions.ConnectionError):
            fetch_page("http://j-archive.com", retries=2, backoff=1)
        self.assertEqual(mock_get.call_count, 3)


class TestSeasonPages(unittest.TestCase):

    def test_get_season_episode_links_oldest_first(self):
        links = get_season_episode_links(Document(SEASON_PAGE))
        self.assertEqual(links, [
            ("8044", "http://j-archive.com/showgame.php?game_id=6529"),
            ("8045", "http://j-archive.com/showgame.php?game_id=6530"),
        ])

    @mock.patch('jparser.download.fetch_page')
    def test_get_current_season_number(self, mock_fetch):
        mock_fetch.return_value = HOME_PAGE
        self.assertEqual(get_current_season_number(), 36)

    @mock.patch('jparser.download.fetch_page')
    def test_get_current_season_number_unavailable(self, mock_fetch):
        mock_fetch.side_effect = requests.exceptions.ConnectionError()
        self.assertIsNone(get_current_season_number())


@mock.patch('jparser.download.sleep')
@mock.patch('jparser.download.fetch_page')
class TestDownloadWorker(unittest.TestCase):

    def setUp(self):
        self.site_folder = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.site_folder)

    def test_download_season_skips_existing_pages(self, mock_fetch, mock_sleep):
        season_folder = os.path.join(self.site_folder, "season 35")
        os.makedirs(season_folder)
        open(os.path.join(season_folder, "8044.html"), "w").close()
        mock_fetch.side_effect = lambda url: SEASON_PAGE if "showseason" in url else "<html>game</html>"

        worker = DownloadWorker(queue.Queue(), self.site_folder, delay=(0, 0))
        worker.download_season(35)

        self.assertEqual(worker.downloaded, 1)
        with open(os.path.join(season_folder, "8045.html")) as page:
            self.assertEqual(page.read(), "<html>game</html>")
        fetched = [c[0][0] for c in mock_fetch.call_args_list]
        self.assertEqual(fetched, ["http://j-archive.com/showseason.php?season=35",
                                   "http://j-archive.com/showgame.php?game_id=6530"])

    def test_failed_episode_does_not_stop_season(self, mock_fetch, mock_sleep):
        def fetch(url):
            if "showseason" in url:
                return SEASON_PAGE
            if url.endswith("6529"):
                raise requests.exceptions.ConnectionError()
            return "<html>game</html>"
        mock_fetch.side_effect = fetch

        worker = DownloadWorker(queue.Queue(), self.site_folder, delay=(0, 0))
        worker.download_season(35)
        self.assertEqual(os.listdir(os.path.join(self.site_folder, "season 35")), ["8045.html"])

    def test_run_stops_at_sentinel(self, mock_fetch, mock_sleep):
        season_queue = queue.Queue()
        season_queue.put(SEASON_SENTINEL)
        worker = DownloadWorker(season_queue, self.site_folder)
        with mock.patch.object(worker, 'download_season') as mock_download:
            worker.run()
        mock_download.assert_not_called()
        self.assertEqual(season_queue.get_nowait(), SEASON_SENTINEL)


class TestSeasonDownloader(unittest.TestCase):

    @mock.patch('jparser.download.get_current_season_number')
    def test_defaults_to_current_season(self, mock_current):
        mock_current.return_value = 36
        self.assertEqual(SeasonDownloader().resolve_seasons(), [36])

    @mock.patch('jparser.download.get_current_season_number')
    def test_falls_back_to_latest_known_season(self, mock_current):
        mock_current.return_value = None
        self.assertEqual(SeasonDownloader().resolve_seasons(), [41])

    @mock.patch('jparser.download.DownloadWorker.download_season')
    def test_start_downloads_every_season(self, mock_download):
        site_folder = tempfile.mkdtemp()
        try:
            SeasonDownloader([3, 1, 2], site_folder=site_folder, threads=2).start()
        finally:
            shutil.rmtree(site_folder)
        self.assertEqual(sorted(c[0][0] for c in mock_download.call_args_list), [1, 2, 3])


if __name__ == "__main__":
    unittest.main()
