"""
Extraction of WITH clause entries into standalone sub-query definitions.
"""

import logging
from dataclasses import dataclass, field

from ctekit.parser.parsers.sql_parser import SQLParser
from ctekit.parser.shared.exceptions import DuplicateCteError, SQLParsingError

logger = logging.getLogger(__name__)


@dataclass
class CteDefinition:
    """One named sub-query taken out of a WITH clause."""

    name: str
    body_sql: str
    declared_columns: list[str] = field(default_factory=list)
    columns: list[str] = field(default_factory=list)


@dataclass
class ExtractionResult:
    """Sub-query definitions plus the statement with its WITH block removed."""

    definitions: list[CteDefinition]
    remainder_sql: str
    recursive: bool = False

    @property
    def names(self) -> list[str]:
        return [definition.name for definition in self.definitions]

    @property
    def has_ctes(self) -> bool:
        return bool(self.definitions)


class CteExtractor:
    """Splits a statement into named sub-query definitions and a remainder."""

    def __init__(self, parser: SQLParser | None = None):
        self.parser = parser or SQLParser()

    def extract(self, sql: str) -> ExtractionResult:
        """
        Extract the WITH clause of a statement.

        Args:
            sql: Full SQL text, optionally beginning with WITH [RECURSIVE]

        Returns:
            ExtractionResult; without a WITH clause the list is empty and the
            remainder is the input text unchanged

        Raises:
            SQLParsingError: If the statement is malformed
            DuplicateCteError: If the WITH clause defines a name twice
        """
        parsed = self.parser.parse(sql)

        definitions = []
        seen = set()
        for item in parsed["with_items"]:
            name = item["name"]
            if name in seen:
                raise DuplicateCteError(name)
            seen.add(name)
            definitions.append(
                CteDefinition(
                    name=name,
                    body_sql=item["body"],
                    declared_columns=list(item["columns"]),
                    columns=list(item["columns"]) or self.infer_columns(item["body"], name),
                )
            )

        if definitions:
            logger.debug(f"Extracted {len(definitions)} CTEs: {[d.name for d in definitions]}")

        return ExtractionResult(
            definitions=definitions,
            remainder_sql=parsed["remainder"],
            recursive=parsed["recursive"],
        )

    def infer_columns(self, body_sql: str, name: str | None = None) -> list[str]:
        """Best-effort output column names of a body; empty when they cannot be determined."""
        try:
            return self.parser.output_columns(body_sql)
        except SQLParsingError as e:
            logger.debug(f"Could not analyze columns for {name or 'query'}: {e}")
            return []
