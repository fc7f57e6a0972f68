class NoRoundsFoundError(Exception):
    """Raise when an episode page contains none of the four round containers.

    Usually a page j-archive has not finished archiving, or an error page that was saved instead of the game.
    The episode is skipped; other episodes are unaffected.
    """
    pass


class MalformedRoundHTMLError(Exception):
    """Raise when the HTML of a single grid round holds no clue cells at all.

    Mismatched tags in a round can leave Beautiful Soup with a table it cannot walk. The round is skipped, sibling
    rounds of the same episode are still extracted.
    """
    pass


class IncompleteClueError(Exception):
    """Raise when a grid clue cell has no visible question text.

    Clues that never aired are left in the grid as empty placeholder cells. They still occupy a column.
    """
    pass


class FragmentParseError(Exception):
    """Raise when markup embedded in an attribute value (the mouseover fragment) cannot be parsed."""
    pass


class SinkConnectionError(Exception):
    """Raise when an output sink is unable to open its underlying resource."""
    pass


class PageParseError(Exception):
    """Raise when the HTML parser rejects a page outright, e.g. a malformed markup declaration."""
    pass


class SiteFolderError(Exception):
    """Raise when the folder of downloaded seasons can't be read, usually because nothing was downloaded yet."""
    pass
