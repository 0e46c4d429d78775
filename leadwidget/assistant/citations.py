"""Citation marker handling for assistant replies.

File-search answers carry inline markers such as ``【4:2†source】``. They
are kept in the persisted copy of a reply and stripped from the text
shown to the visitor.
"""

import re

CITATION_PATTERN = re.compile(r"\s*【[^】†]+†source】")


def strip_citations(text: str) -> str:
    """Remove citation markers and the whitespace directly before them.

    Examples:
        >>> strip_citations("The U-value is 1.3【4:2†source】.")
        'The U-value is 1.3.'
        >>> strip_citations("No markers here.")
        'No markers here.'
    """
    return CITATION_PATTERN.sub("", text)


def clean_reply(text: str) -> str:
    """Strip markers and surrounding whitespace; an empty result means no reply."""
    return strip_citations(text).strip()
