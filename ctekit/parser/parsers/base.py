"""
Abstract base parser class for all parsers.
"""

from abc import ABC, abstractmethod
from collections import OrderedDict
from typing import Any

from ..shared.constants import PARSE_CACHE_SIZE
from ..shared.types import FilePath


class BaseParser(ABC):
    """
    Abstract base class for all parsers.

    Parsed results are kept in a least-recently-used cache keyed by content,
    holding at most ``cache_size`` entries.
    """

    def __init__(self, cache_size: int = PARSE_CACHE_SIZE):
        self.cache_size = cache_size
        self._cache: OrderedDict[tuple[str | None, str], Any] = OrderedDict()

    def clear_cache(self) -> None:
        """Clear the parser cache."""
        self._cache.clear()

    @abstractmethod
    def parse(self, content: str, file_path: FilePath = None) -> Any:
        """
        Parse content and return structured data.

        Args:
            content: The content to parse
            file_path: Optional file path for context

        Returns:
            Parsed data

        Raises:
            ParserError: If parsing fails
        """
        pass

    def _get_cache_key(self, content: str, file_path: FilePath = None) -> tuple[str | None, str]:
        return (str(file_path) if file_path else None, content)

    def _get_from_cache(self, cache_key: tuple[str | None, str]) -> Any:
        data = self._cache.get(cache_key)
        if data is not None:
            self._cache.move_to_end(cache_key)
        return data

    def _set_cache(self, cache_key: tuple[str | None, str], data: Any) -> None:
        if self.cache_size <= 0:
            return
        self._cache[cache_key] = data
        self._cache.move_to_end(cache_key)
        while len(self._cache) > self.cache_size:
            self._cache.popitem(last=False)
