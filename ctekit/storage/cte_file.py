"""
On-disk format of a single sub-query file.

A file is a small header of block comments followed by the executable body:

    /* name: user_stats */
    /* description: Order statistics per user */
    /* dependencies: [orders_clean] */
    SELECT user_id, COUNT(*) AS order_count FROM orders_clean GROUP BY user_id
"""

import re

from ctekit.core.entities import CteEntity
from ctekit.parser.shared.exceptions import StorageError

_NAME_RE = re.compile(r"/\*\s*name\s*:\s*(.+?)\s*\*/", re.IGNORECASE)
_DESCRIPTION_RE = re.compile(r"/\*\s*description\s*:\s*(.*?)\s*\*/", re.IGNORECASE)
_DEPENDENCIES_RE = re.compile(r"/\*\s*dependencies\s*:\s*\[([^\]]*)\]\s*\*/", re.IGNORECASE)
_COLUMNS_RE = re.compile(r"/\*\s*columns\s*:\s*\[([^\]]*)\]\s*\*/", re.IGNORECASE)
_HEADER_RE = re.compile(
    r"\A(?:\s*/\*\s*(?:name|description|dependencies|columns)\s*:.*?\*/)+\s*",
    re.IGNORECASE | re.DOTALL,
)


def _parse_list(raw: str) -> list[str]:
    items = [item.strip().strip("'\"") for item in raw.split(",")]
    return [item for item in items if item]


def parse_cte_file(content: str, default_name: str | None = None) -> CteEntity:
    """
    Parse a sub-query file.

    Args:
        content: File content
        default_name: Name used when the header has none (usually the file stem)

    Returns:
        CteEntity with header metadata and the body

    Raises:
        StorageError: If no name can be determined or the body is empty
    """
    header_match = _HEADER_RE.match(content)
    header = header_match.group(0) if header_match else ""
    body = content[len(header):].strip()

    name_match = _NAME_RE.search(header)
    name = name_match.group(1).strip() if name_match else default_name
    if not name:
        raise StorageError("CTE file has no name header and no default name")
    if not body:
        raise StorageError(f"CTE file for '{name}' has an empty body")

    description_match = _DESCRIPTION_RE.search(header)
    dependencies_match = _DEPENDENCIES_RE.search(header)
    columns_match = _COLUMNS_RE.search(header)

    return CteEntity(
        name=name,
        body_sql=body,
        dependencies=_parse_list(dependencies_match.group(1)) if dependencies_match else [],
        declared_columns=_parse_list(columns_match.group(1)) if columns_match else [],
        description=(description_match.group(1) or None) if description_match else None,
    )


def format_cte_file(entity: CteEntity) -> str:
    """Serialize an entity to the sub-query file format."""
    lines = [f"/* name: {entity.name} */"]
    if entity.description:
        lines.append(f"/* description: {entity.description} */")
    lines.append(f"/* dependencies: [{', '.join(entity.dependencies)}] */")
    if entity.declared_columns:
        lines.append(f"/* columns: [{', '.join(entity.declared_columns)}] */")
    lines.append(entity.body_sql.strip())
    return "\n".join(lines) + "\n"
