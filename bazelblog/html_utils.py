"""HTML utility functions for BazelBlog.

This module provides the small amount of textual HTML handling the tool
needs: pulling the body out of legacy HTML pages and injecting the live
reload script into served pages.

Functions:
    escape_html: Escape special HTML characters in a string.
    extract_body: Return the text between <body> and </body>.
    inject_before_body_end: Insert a snippet before the closing body tag.
"""

from __future__ import annotations


def escape_html(text: str) -> str:
    """Escape special HTML characters in a string.

    Converts the following characters to their HTML entity equivalents:
    - & becomes &amp;
    - < becomes &lt;
    - > becomes &gt;
    - " becomes &quot;

    Args:
        text: The string to escape.

    Returns:
        The escaped string, safe for inclusion in HTML.

    Examples:
        >>> escape_html('Tom & Jerry')
        'Tom &amp; Jerry'
    """
    return (
        text.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
    )


def extract_body(html: str) -> str:
    """Return the content between the first ``<body>`` and ``</body>``.

    The markers are located textually and case-sensitively. If either is
    missing the whole document is returned unchanged.

    Examples:
        >>> extract_body("<html><body><p>Hi</p></body></html>")
        '<p>Hi</p>'

        >>> extract_body("<p>Fragment</p>")
        '<p>Fragment</p>'
    """
    start = html.find("<body>")
    end = html.find("</body>")
    if start == -1 or end == -1:
        return html
    return html[start + len("<body>") : end]


def inject_before_body_end(html: str, snippet: str) -> str:
    """Insert ``snippet`` before the last closing body tag.

    Upper-case ``</BODY>`` is honoured too; documents without a closing body
    tag get the snippet appended.

    Args:
        html: Document to modify.
        snippet: Markup to insert.

    Returns:
        The modified document.
    """
    for marker in ("</body>", "</BODY>"):
        index = html.rfind(marker)
        if index != -1:
            return html[:index] + snippet + html[index:]
    return html + snippet
