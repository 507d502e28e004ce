"""
Relation-name scanning for sub-query bodies.
"""

import logging
import re
from typing import Iterable

from ctekit.parser.parsers.sql_parser import SQLParser
from ctekit.parser.shared.constants import NON_RELATION_KEYWORDS
from ctekit.parser.shared.exceptions import SQLParsingError

logger = logging.getLogger(__name__)

_BLOCK_COMMENT_RE = re.compile(r"/\*.*?\*/", re.DOTALL)
_LINE_COMMENT_RE = re.compile(r"--[^\n]*")
_STRING_LITERAL_RE = re.compile(r"'(?:[^']|'')*'")

_IDENTIFIER = r'(?:"[^"]+"|[A-Za-z_][A-Za-z0-9_$]*)'
_FROM_JOIN_RE = re.compile(
    rf"\b(?:FROM|JOIN)\s+({_IDENTIFIER}(?:\s*\.\s*{_IDENTIFIER})*)", re.IGNORECASE
)
_LOCAL_CTE_RE = re.compile(
    rf"(?:\bWITH(?:\s+RECURSIVE)?|,)\s*({_IDENTIFIER})\s*(?:\([^()]*\))?\s+AS\s*"
    r"(?:NOT\s+)?(?:MATERIALIZED\s*)?\(",
    re.IGNORECASE,
)
# FROM used as a keyword inside function calls or IS DISTINCT FROM
_NON_RELATION_FROM_RE = re.compile(
    r"(?:\b(?:EXTRACT|SUBSTRING|TRIM|POSITION|OVERLAY)\s*\([^()]*|\bDISTINCT\s*)$",
    re.IGNORECASE,
)


class DependencyScanner:
    """Finds the relation names a query reads from."""

    def __init__(self, parser: SQLParser | None = None, use_fallback: bool = True):
        """
        Initialize the scanner.

        Args:
            parser: SQLParser used for structured extraction
            use_fallback: Allow the pattern-based scan when a statement does not parse
        """
        self.parser = parser or SQLParser()
        self.use_fallback = use_fallback

    def scan(self, sql: str, strict: bool = False) -> list[str]:
        """
        Scan a query body for referenced relation names.

        The structured scan covers plain, set-operation and nested queries alike.
        The pattern-based scan is only used for a statement that cannot be
        parsed at all, and never mixed with the structured result.

        Args:
            sql: Query body
            strict: Raise instead of falling back when the statement does not parse

        Returns:
            Order-preserving, deduplicated relation names

        Raises:
            SQLParsingError: If parsing fails and no fallback is allowed
        """
        try:
            return self.parser.collect_relation_names(sql)
        except SQLParsingError as e:
            if strict or not self.use_fallback:
                raise
            logger.warning(f"Structured scan failed, using FROM/JOIN pattern scan: {e}")
            return self.fallback_scan(sql)

    def scan_restricted(
        self,
        sql: str,
        known_names: Iterable[str],
        exclude: str | None = None,
        strict: bool = False,
    ) -> list[str]:
        """
        Scan a body and keep only names from a known set.

        Args:
            sql: Query body
            known_names: Names that count as dependencies (e.g. sibling sub-queries)
            exclude: Name to drop from the result, typically the body's own name
            strict: See scan()

        Returns:
            Matching names in order of appearance
        """
        known = set(known_names)
        return [
            name
            for name in self.scan(sql, strict=strict)
            if name in known and name != exclude
        ]

    def fallback_scan(self, sql: str) -> list[str]:
        """
        Conservative FROM/JOIN pattern scan.

        Comments and string literals are blanked first; keywords, non-identifier
        tokens and names defined by a local WITH clause are rejected. Unquoted
        names are folded the way the dialect folds them.
        """
        text = _BLOCK_COMMENT_RE.sub(" ", sql or "")
        text = _LINE_COMMENT_RE.sub(" ", text)
        text = _STRING_LITERAL_RE.sub("''", text)

        local_names = {
            self.parser.canonical_name(match.group(1)) for match in _LOCAL_CTE_RE.finditer(text)
        }

        names = []
        for match in _FROM_JOIN_RE.finditer(text):
            if _NON_RELATION_FROM_RE.search(text[: match.start()]):
                continue
            parts = [
                self.parser.canonical_name(part.strip()) for part in match.group(1).split(".")
            ]
            if len(parts) == 1 and parts[0].lower() in NON_RELATION_KEYWORDS:
                continue
            name = ".".join(parts)
            if name in local_names:
                continue
            names.append(name)

        result = list(dict.fromkeys(names))
        logger.debug(f"Pattern scan found relations: {result}")
        return result
