"""
Field extraction from device status pages.

The phone status page is not self-describing: the battery details live in
the third <table> of the document, one label per row. Extraction is a set
of label -> field rules applied to the rows of that table.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, Optional, Sequence, Union

from bs4 import BeautifulSoup

from .errors import MarkupParseError

logger = logging.getLogger(__name__)

# Battery info is located in the third table of the status page
STATUS_TABLE_INDEX = 2


@dataclass(frozen=True)
class ExtractionRule:
    """A table row whose text contains ``label`` yields ``field``."""

    label: str
    field: str

    def match(self, row_text: str) -> Optional[str]:
        """
        Apply the rule to the text of one row.

        Returns:
            The text after the label with surrounding whitespace trimmed,
            or None if the label is not in the row
        """
        _, found, value = row_text.partition(self.label)
        if not found:
            return None
        return value.strip()


BATTERY_RULES: Sequence[ExtractionRule] = (
    ExtractionRule(label="Battery health", field="health"),
    ExtractionRule(label="Battery temperature:", field="temperature"),
)


def parse_markup(markup: Union[str, bytes]) -> BeautifulSoup:
    """
    Parse an HTML document.

    Args:
        markup: Raw page body; bytes are decoded by BeautifulSoup's
                encoding detection

    Raises:
        MarkupParseError: If the document cannot be parsed
    """
    try:
        return BeautifulSoup(markup, "html.parser")
    except Exception as e:
        raise MarkupParseError(f"Failed to parse HTML: {e}") from e


def extract_fields(
    markup: Union[str, bytes],
    rules: Iterable[ExtractionRule] = BATTERY_RULES,
    table_index: int = STATUS_TABLE_INDEX,
) -> Dict[str, str]:
    """
    Extract labelled fields from the fixed-position status table.

    Every rule's field is present in the result; a field with no matching
    row is an empty string. When several rows match a rule, the last one
    wins.

    Args:
        markup: Raw page body
        rules: Label -> field rules to apply to each row
        table_index: Zero-based index of the table in document order

    Returns:
        Dictionary of field name -> extracted text

    Raises:
        MarkupParseError: If the document cannot be parsed
    """
    rules = list(rules)
    fields = {rule.field: "" for rule in rules}

    soup = parse_markup(markup)
    tables = soup.find_all("table")
    if len(tables) <= table_index:
        logger.debug(
            f"Status page has {len(tables)} table(s), expected at least {table_index + 1}"
        )
        return fields

    for row in tables[table_index].find_all("tr"):
        row_text = row.get_text()
        for rule in rules:
            value = rule.match(row_text)
            if value is not None:
                fields[rule.field] = value

    return fields
