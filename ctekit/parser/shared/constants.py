"""
Constants for the parser module.
"""

# Default SQL dialect understood by sqlglot
DEFAULT_DIALECT = "postgres"

# Recursion bound for dependency resolution and subquery nesting
MAX_RESOLUTION_DEPTH = 64

# Parsed statements kept per parser
PARSE_CACHE_SIZE = 256

# Workspace layout on disk
MAIN_QUERY_FILE = "main.sql"
CTE_FOLDER = "cte"
DEFAULT_SHARED_CTE_FOLDER = "shared-cte"
DEFAULT_CACHE_FILE = "shared-cte.cache.json"

# Pool identifiers
PRIVATE_POOL = "private"
SHARED_POOL = "shared"

# Valid sub-query names
CTE_NAME_PATTERN = r"^[A-Za-z_][A-Za-z0-9_]*$"

# Keywords that can directly follow FROM/JOIN without being a relation name
NON_RELATION_KEYWORDS = {
    "select",
    "lateral",
    "unnest",
    "only",
    "values",
    "with",
    "where",
    "on",
    "using",
    "join",
    "inner",
    "left",
    "right",
    "full",
    "outer",
    "cross",
    "natural",
    "group",
    "order",
    "limit",
    "union",
    "intersect",
    "except",
    "as",
    "table",
}
