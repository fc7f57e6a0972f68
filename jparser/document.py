"""Read-only query interface over a parsed j-archive page.

The parsing functions never touch Beautiful Soup directly; they only select nodes, read attributes and read text
through a Document. Nodes handed out by a Document are opaque to callers and only ever passed back into it.
"""
import re

import bs4
from bs4.builder import ParserRejectedMarkup

from .exceptions import FragmentParseError, PageParseError

HTML_PARSER = "html.parser"
ESCAPED_CHARACTER_REGEX = re.compile(r'''\\(.)''')


class Document:
    """
    Wraps one parsed page.

    Args:
        markup: Page HTML as a string or open file object.

    Raises:
        PageParseError: If the parser rejects the markup.

    Attributes:
        soup (bs4.BeautifulSoup): Parse tree of the page. Never mutated.
    """

    def __init__(self, markup):
        try:
            self.soup = bs4.BeautifulSoup(markup, HTML_PARSER)
        except ParserRejectedMarkup as e:
            raise PageParseError(str(e)) from e

    @classmethod
    def from_file(cls, path):
        with open(path, "r", encoding="utf-8", errors="replace") as markup:
            return cls(markup)

    @classmethod
    def fragment(cls, markup):
        """Parse markup that j-archive stores escaped inside an attribute value.

        The onmouseover attribute holds a javascript call whose string argument is HTML with quotes escaped by
        backslashes. Escapes are removed before parsing so attribute values come out clean.

        Raises:
            FragmentParseError: If the markup is missing or the parser rejects it.
        """

        if not markup:
            raise FragmentParseError("Empty fragment")
        try:
            return cls(ESCAPED_CHARACTER_REGEX.sub(r'\1', markup))
        except PageParseError as e:
            raise FragmentParseError(str(e)) from e

    def select(self, selector, scope=None):
        """Returns the nodes matching a CSS selector, in document order. An empty list when nothing matches."""
        root = self.soup if scope is None else scope
        return root.select(selector)

    def select_one(self, selector, scope=None):
        root = self.soup if scope is None else scope
        return root.select_one(selector)

    def exists(self, selector, scope=None):
        return self.select_one(selector, scope) is not None

    def closest(self, node, name):
        """Returns the nearest ancestor tag named name, or None."""
        if node is None:
            return None
        return node.find_parent(name)

    def text(self, node):
        """Returns the text of node with whitespace trimmed and collapsed. Missing nodes have no text."""
        if node is None:
            return ""
        return " ".join(node.get_text().split())

    def attr(self, node, name):
        if node is None:
            return None
        value = node.get(name)
        if isinstance(value, list):  # Multi-valued attributes such as class.
            return " ".join(value)
        return value

    def attrs(self, node):
        if node is None:
            return {}
        return dict(node.attrs)
