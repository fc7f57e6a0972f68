"""This module contains the functions that turn a parsed j-archive episode page into CSV records.

Nothing on the page is labelled the way the CSV needs it. Rounds are found by container ids, a clue's category by
its column in the grid, daily doubles by a prefix on the value, and answers sit in hidden cells or in markup
embedded in attributes.
"""
import collections
import enum
import logging

from .config import AIR_DATE_REGEX, EPISODE_NUMBER_REGEX
from .document import Document
from .exceptions import FragmentParseError, IncompleteClueError, MalformedRoundHTMLError, NoRoundsFoundError
from .values import normalize_value

GRID_COLUMNS = 6

Record = collections.namedtuple("Record", [
    "episode_number", "air_date", "round_name", "category", "value", "daily_double", "question", "answer"])
"""One CSV row. Every field is a string; daily_double is "true" or "false"."""

Episode = collections.namedtuple("Episode", ["number", "air_date"])
Clue = collections.namedtuple("Clue", ["category", "value", "daily_double", "question", "answer"])


class RoundKind(enum.Enum):
    """Round kinds in the order they are played and written out. Values are the CSV round_name strings."""

    JEOPARDY = "Jeopardy"
    DOUBLE_JEOPARDY = "Double Jeopardy"
    FINAL_JEOPARDY = "Final Jeopardy"
    TIEBREAKER = "Tiebreaker"

    @property
    def is_grid(self):
        return self in (RoundKind.JEOPARDY, RoundKind.DOUBLE_JEOPARDY)


GRID_ROUND_SELECTORS = (
    (RoundKind.JEOPARDY, "#jeopardy_round"),
    (RoundKind.DOUBLE_JEOPARDY, "#double_jeopardy_round"),
)
FINAL_ROUND_SELECTOR = "#final_jeopardy_round"
FINAL_ROUND_BLOCK_SELECTOR = ".final_round"

SINGLE_CLUE_IDS = {
    RoundKind.FINAL_JEOPARDY: "clue_FJ",
    RoundKind.TIEBREAKER: "clue_TB",
}
RESPONSE_ID_SUFFIX = "_r"
HIDDEN_STYLE = "display:none"


def _format_flag(flag):
    return "true" if flag else "false"


def locate_rounds(document):
    """Returns a list of (RoundKind, node) for every round present on the page, in playing order.

    The node scopes the round's clues. Final Jeopardy and the tiebreaker share one container: the first
    "final_round" block inside it is Final Jeopardy, a second one is the tiebreaker.
    """

    rounds = []
    for kind, selector in GRID_ROUND_SELECTORS:
        round_node = document.select_one(selector)
        if round_node is not None:
            rounds.append((kind, round_node))

    final_container = document.select_one(FINAL_ROUND_SELECTOR)
    if final_container is not None:
        blocks = document.select(FINAL_ROUND_BLOCK_SELECTOR, final_container)
        rounds.append((RoundKind.FINAL_JEOPARDY, blocks[0] if blocks else final_container))
        if len(blocks) > 1:
            rounds.append((RoundKind.TIEBREAKER, blocks[1]))
    return rounds


def _get_round_categories(document, round_node):
    """Returns the category titles of a grid round, left to right. Titles past the sixth column are dropped."""

    categories = [document.text(node) for node in document.select("td.category_name", round_node)]
    if len(categories) > GRID_COLUMNS:
        logging.warning("{} category names in one round, keeping the first {}".format(len(categories), GRID_COLUMNS))
    return categories[:GRID_COLUMNS]


def _get_round_clue_nodes(document, round_node):
    return document.select("td.clue", round_node)


def _get_visible_question_node(document, clue_node):
    """Returns the first clue_text cell that is not hidden with inline styling.

    Clue cells hold both the question and, hidden until hovered, the correct response. Both are "clue_text".
    """

    for node in document.select("td.clue_text", clue_node):
        style = (document.attr(node, "style") or "").replace(" ", "")
        if HIDDEN_STYLE not in style:
            return node
    return None


def _parse_clue_value(document, clue_node):
    value_node = document.select_one("td[class*='clue_value']", clue_node)
    return normalize_value(document.text(value_node))


def _parse_clue_answer(document, question_node):
    """Returns the correct response paired with a visible question cell, or an empty string.

    The response lives in a hidden cell of the same table row whose id is the question's id plus "_r".
    """

    question_id = document.attr(question_node, "id")
    row_node = document.closest(question_node, "tr")
    if not question_id or row_node is None:
        return ""
    response_node = document.select_one('td[id="{}{}"]'.format(question_id, RESPONSE_ID_SUFFIX), row_node)
    if response_node is None:
        return ""
    return document.text(document.select_one("em.correct_response", response_node))


def _serialize_clue_node(document, clue_node, category):
    """Returns a Clue parsed from one cell of the grid.

        Raises:
            IncompleteClueError if the cell has no visible question.
    """

    question_node = _get_visible_question_node(document, clue_node)
    question = document.text(question_node)
    if not question:
        raise IncompleteClueError
    value, daily_double = _parse_clue_value(document, clue_node)
    answer = _parse_clue_answer(document, question_node)
    return Clue(category, value, _format_flag(daily_double), question, answer)


def _serialize_grid_round(document, round_node):
    """
    Returns:
        List of Clues in the order they appear in the grid (row by row).

    Cells are laid out six to a row, so a cell's category is its position in the round modulo 6. Empty cells are
    skipped but still count towards that position.

    Raises:
        MalformedRoundHTMLError: If the round has no clue cells.
    """

    categories = _get_round_categories(document, round_node)
    clue_nodes = _get_round_clue_nodes(document, round_node)
    if not clue_nodes:
        raise MalformedRoundHTMLError("Round has no clue cells")
    clues = []
    column = 0
    for clue_node in clue_nodes:
        category = categories[column] if column < len(categories) else ""
        column = (column + 1) % GRID_COLUMNS
        try:
            clues.append(_serialize_clue_node(document, clue_node, category))
        except IncompleteClueError:
            continue  # Clue was never revealed on the show.
    return clues


def _parse_mouseover_fragment(document, round_node):
    """Returns the markup embedded in the round's onmouseover attribute as a Document, or None.

    None is returned both when the round has no mouseover and when its markup can't be parsed.
    """

    mouseover_node = document.select_one("div[onmouseover]", round_node)
    if mouseover_node is None:
        return None
    try:
        return Document.fragment(document.attr(mouseover_node, "onmouseover"))
    except FragmentParseError:
        logging.info("Unable to parse mouseover fragment of final round")
        return None


def _parse_final_wagers(fragment):
    """Returns the contestants' wagers, comma-joined in page order.

    The mouseover table labels contestant names and responses with attributes; the wager cells are bare <td>s.
    Wagers lose their dollar sign and thousands separators, so the commas only ever separate wagers.
    """

    if fragment is None:
        return ""
    wagers = [fragment.text(node) for node in fragment.select("td") if not fragment.attrs(node)]
    return ",".join(normalize_value(wager)[0] if wager else "" for wager in wagers)


def _parse_single_clue_response(document, round_node, clue_id):
    response_node = document.select_one('td[id="{}{}"]'.format(clue_id, RESPONSE_ID_SUFFIX), round_node)
    if response_node is None:
        return ""
    return document.text(document.select_one("em.correct_response", response_node))


def _serialize_single_clue_round(document, kind, round_node):
    """Returns a one-element list with the Clue of a Final Jeopardy or tiebreaker round."""

    clue_id = SINGLE_CLUE_IDS[kind]
    category = document.text(document.select_one("td.category_name", round_node))
    question = document.text(document.select_one('td[id="{}"]'.format(clue_id), round_node))
    fragment = _parse_mouseover_fragment(document, round_node)

    if kind is RoundKind.FINAL_JEOPARDY:
        value = _parse_final_wagers(fragment)
        answer = _parse_single_clue_response(document, round_node, clue_id)
    else:
        value = ""
        if document.exists("div[onmouseover]", round_node):
            answer = fragment.text(fragment.select_one("em")) if fragment is not None else ""
        else:
            answer = _parse_single_clue_response(document, round_node, clue_id)
    return [Clue(category, value, _format_flag(False), question, answer)]


def extract_round(document, kind, round_node, episode):
    """Returns the Records of one round, stamped with the episode's number and air date.

    Raises:
        MalformedRoundHTMLError: If a grid round has no clue cells.
    """

    if kind.is_grid:
        clues = _serialize_grid_round(document, round_node)
    else:
        clues = _serialize_single_clue_round(document, kind, round_node)
    return [Record(episode.number, episode.air_date, kind.value, *clue) for clue in clues]


class EpisodeExtractor:
    """
    Extracts every Record of an episode page.

    Args:
        episode_number_regex: Compiled pattern whose first group is the episode number in the page title.
        air_date_regex: Compiled pattern matching the air date in the page title.

    An extractor holds no per-page state and may be shared by any number of threads.
    """

    def __init__(self, episode_number_regex=EPISODE_NUMBER_REGEX, air_date_regex=AIR_DATE_REGEX):
        self.episode_number_regex = episode_number_regex
        self.air_date_regex = air_date_regex

    def parse_episode(self, document):
        title = document.text(document.select_one("title"))
        number_match = self.episode_number_regex.search(title)
        date_match = self.air_date_regex.search(title)
        return Episode(
            number_match.group(1) if number_match else "",
            date_match.group(0) if date_match else "")

    def extract(self, document):
        """
        Returns:
            List of Records for every round on the page, in playing order.

        Raises:
            NoRoundsFoundError: If the page has no round containers at all.
        """

        rounds = locate_rounds(document)
        if not rounds:
            raise NoRoundsFoundError("No rounds found on page")

        episode = self.parse_episode(document)
        records = []
        for kind, round_node in rounds:
            try:
                records.extend(extract_round(document, kind, round_node, episode))
            except MalformedRoundHTMLError as e:
                logging.warning("Skipping {} round of episode {}: {}".format(kind.value, episode.number, e))
                continue
        return records


def parse_episode_page(markup, extractor=None):
    """Parses raw page markup and returns its Records. See EpisodeExtractor.extract."""
    extractor = extractor or EpisodeExtractor()
    return extractor.extract(Document(markup))
