"""
SQL parsing and rendering using sqlglot.

This is the only module that talks to sqlglot directly. Everything above it
works with plain strings and the structures defined in ctekit.typing.
"""

import copy
import logging

import sqlglot
from sqlglot import exp
from sqlglot.dialects.dialect import Dialect
from sqlglot.errors import SqlglotError

from ctekit.parser.shared.constants import DEFAULT_DIALECT, MAX_RESOLUTION_DEPTH
from ctekit.parser.shared.exceptions import SQLParsingError
from ctekit.parser.shared.types import FilePath
from ctekit.typing.cte import ParsedStatement, WithItem

from .base import BaseParser

logger = logging.getLogger(__name__)

# sqlglot renamed the WITH argument of queries from "with" to "with_"
WITH_ARG_KEYS = ("with", "with_")


def get_with_clause(expression: exp.Expression) -> exp.With | None:
    """Return the top-level WITH clause of a statement, if any."""
    for key in WITH_ARG_KEYS:
        clause = expression.args.get(key)
        if isinstance(clause, exp.With):
            return clause
    return None


def strip_with_clause(expression: exp.Expression) -> exp.Expression:
    """Return a copy of the statement without its top-level WITH clause."""
    stripped = expression.copy()
    for key in WITH_ARG_KEYS:
        if stripped.args.get(key) is not None:
            stripped.set(key, None)
    return stripped


class SQLParser(BaseParser):
    """Handles SQL parsing and rendering using sqlglot."""

    def __init__(
        self,
        dialect: str | None = DEFAULT_DIALECT,
        pretty: bool = False,
        max_depth: int = MAX_RESOLUTION_DEPTH,
    ):
        super().__init__()
        self.dialect = dialect
        self.pretty = pretty
        self.max_depth = max_depth
        self._dialect = Dialect.get_or_raise(dialect)

    def parse_expression(self, content: str, name: str | None = None) -> exp.Expression:
        """
        Parse exactly one SQL statement into a sqlglot expression.

        Args:
            content: SQL text
            name: Optional name of the sub-query being parsed, carried on errors

        Returns:
            The parsed expression

        Raises:
            SQLParsingError: If the text is empty, malformed or holds several statements
        """
        if content is None or not content.strip():
            raise SQLParsingError("Empty SQL statement", name=name)

        try:
            statements = [
                statement
                for statement in sqlglot.parse(content, read=self.dialect)
                if statement is not None
            ]
        except SqlglotError as e:
            raise SQLParsingError(f"SQL parsing error: {e}", name=name) from e
        except RecursionError as e:
            raise SQLParsingError("SQL statement is nested too deeply to parse", name=name) from e

        if not statements:
            raise SQLParsingError("No SQL statement found", name=name)
        if len(statements) > 1:
            raise SQLParsingError(
                f"Expected a single SQL statement, found {len(statements)}", name=name
            )
        return statements[0]

    def parse(self, content: str, file_path: FilePath = None) -> ParsedStatement:
        """
        Split a statement into its WITH entries and the remainder query.

        Args:
            content: Full SQL text, optionally starting with WITH [RECURSIVE]
            file_path: Optional file path for context

        Returns:
            ParsedStatement; without a WITH clause the remainder is the input text unchanged

        Raises:
            SQLParsingError: If SQL parsing fails
        """
        cache_key = self._get_cache_key(content, file_path)
        cached_result = self._get_from_cache(cache_key)
        if cached_result:
            return copy.deepcopy(cached_result)

        expression = self.parse_expression(content)
        with_clause = get_with_clause(expression)

        if with_clause is None:
            result: ParsedStatement = {
                "with_items": [],
                "remainder": content,
                "recursive": False,
                "has_with": False,
            }
        else:
            with_items: list[WithItem] = []
            for cte in with_clause.expressions:
                alias = cte.args.get("alias")
                with_items.append(
                    {
                        "name": self._cte_name(cte),
                        "body": self.render(cte.this),
                        "columns": [self.identifier_name(column) for column in alias.columns]
                        if alias
                        else [],
                    }
                )
            result = {
                "with_items": with_items,
                "remainder": self.render(strip_with_clause(expression)),
                "recursive": bool(with_clause.args.get("recursive")),
                "has_with": True,
            }
            logger.debug(
                f"Parsed WITH clause with {len(with_items)} entries: "
                f"{[item['name'] for item in with_items]}"
            )

        self._set_cache(cache_key, result)
        return copy.deepcopy(result)

    def render(self, expression: exp.Expression) -> str:
        """Render an expression back to SQL text in the configured dialect."""
        return expression.sql(dialect=self.dialect, pretty=self.pretty)

    def normalize(self, content: str, name: str | None = None) -> str:
        """Parse and re-render SQL text, dropping comments and trailing semicolons."""
        return self.render(self.parse_expression(content, name=name))

    def render_identifier(self, name: str) -> str:
        """
        Render a name as an identifier, quoting it only when required.

        A name the dialect would fold to something else when unquoted (``A``
        in postgres) is quoted so it still refers to itself.
        """
        identifier = exp.to_identifier(name)
        if not identifier.quoted and self.identifier_name(identifier) != name:
            identifier = exp.to_identifier(name, quoted=True)
        return identifier.sql(dialect=self.dialect)

    def identifier_name(self, identifier: exp.Expression) -> str:
        """Name of an identifier as the dialect resolves it (unquoted names are folded)."""
        if not isinstance(identifier, exp.Identifier):
            return identifier.name
        return self._dialect.normalize_identifier(identifier.copy()).name

    def canonical_name(self, name: str) -> str:
        """
        Resolve a user-supplied name the way the dialect resolves it in SQL.

        ``Sales`` becomes ``sales`` in postgres, while a double-quoted
        ``"Sales"`` keeps its case.
        """
        if len(name) >= 2 and name[0] == name[-1] == '"':
            return name[1:-1]
        return self.identifier_name(exp.to_identifier(name))

    def relation_name(self, table: exp.Table) -> str:
        """Dotted, dialect-resolved name of a table reference (catalog.db.name)."""
        parts = [table.args.get(key) for key in ("catalog", "db", "this")]
        return ".".join(
            self.identifier_name(part) for part in parts if part is not None and part.name
        )

    def is_query(self, content: str, name: str | None = None) -> bool:
        """Check whether SQL text is a query usable as a sub-query body."""
        return isinstance(self.parse_expression(content, name=name), exp.Query)

    def collect_relation_names(self, body: str) -> list[str]:
        """
        Collect the relation names a query reads from.

        Walks the whole tree depth-first, so FROM/JOIN sources of set-operation
        branches and nested subqueries are all included, in order of appearance.
        A name is skipped only where a WITH clause enclosing that reference
        defines it; a WITH inside some other subquery does not hide it.
        Names are resolved the way the dialect resolves identifiers.

        Args:
            body: SQL query text

        Returns:
            Deduplicated list of relation names

        Raises:
            SQLParsingError: If parsing fails or subqueries nest deeper than max_depth
        """
        expression = self.parse_expression(body)

        names = []
        for table in expression.find_all(exp.Table, bfs=False):
            # Table functions (generate_series(...), unnest(...)) are not relations
            if not isinstance(table.this, exp.Identifier):
                continue
            self._check_nesting(table)
            name = self.relation_name(table)
            if not table.args.get("db") and self._defined_in_scope(table, name):
                continue
            names.append(name)

        return list(dict.fromkeys(names))

    def _cte_name(self, cte: exp.CTE) -> str:
        alias = cte.args.get("alias")
        if alias is not None and isinstance(alias.this, exp.Identifier):
            return self.identifier_name(alias.this)
        return cte.alias

    def _defined_in_scope(self, table: exp.Table, name: str) -> bool:
        """Whether a WITH clause of a query enclosing the reference defines the name."""
        node = table.parent
        while node is not None:
            with_clause = get_with_clause(node)
            if with_clause is not None and any(
                self._cte_name(cte) == name for cte in with_clause.expressions
            ):
                return True
            node = node.parent
        return False

    def output_columns(self, body: str) -> list[str]:
        """Output column names of a query, without wildcards."""
        expression = self.parse_expression(body)
        if not isinstance(expression, exp.Query):
            return []
        return [column for column in expression.named_selects if column and column != "*"]

    def _check_nesting(self, node: exp.Expression) -> None:
        """Fail fast on subqueries nested deeper than max_depth."""
        depth = 0
        parent = node.parent
        while parent is not None:
            if isinstance(parent, (exp.Subquery, exp.CTE)):
                depth += 1
                if depth > self.max_depth:
                    raise SQLParsingError(
                        f"Subquery nesting exceeds maximum depth of {self.max_depth}"
                    )
            parent = parent.parent
