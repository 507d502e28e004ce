"""
Custom exceptions for the parser module.
"""


class ParserError(Exception):
    """Base exception for all parser-related errors."""

    pass


class SQLParsingError(ParserError):
    """Raised when SQL text is malformed and cannot be parsed."""

    def __init__(self, message: str, name: str | None = None):
        super().__init__(message)
        self.name = name

    @property
    def names(self) -> list[str]:
        return [self.name] if self.name else []


class DuplicateCteError(SQLParsingError):
    """Raised when a WITH clause defines the same sub-query name twice."""

    def __init__(self, name: str):
        super().__init__(f"Duplicate CTE name in WITH clause: {name}", name=name)


class DependencyError(ParserError):
    """Raised when dependency analysis fails."""

    pass


class CircularDependencyError(DependencyError):
    """Raised when sub-queries depend on each other in a cycle."""

    def __init__(self, cycle: list[str]):
        self.cycle = list(cycle)
        super().__init__(f"Circular dependency detected: {' -> '.join(self.cycle)}")

    @property
    def names(self) -> list[str]:
        return list(dict.fromkeys(self.cycle))


class DependencyDepthError(DependencyError):
    """Raised when a dependency chain is nested deeper than the configured limit."""

    def __init__(self, path: list[str], max_depth: int):
        self.path = list(path)
        self.max_depth = max_depth
        super().__init__(
            f"Dependency chain exceeds maximum depth of {max_depth}: "
            f"{' -> '.join(self.path[:5])} ..."
        )

    @property
    def names(self) -> list[str]:
        return list(dict.fromkeys(self.path))


class DependentsExistError(DependencyError):
    """Raised when removing a sub-query that other sub-queries still reference."""

    def __init__(self, name: str, dependents: list[str]):
        self.name = name
        self.dependents = list(dependents)
        super().__init__(
            f"Cannot remove CTE '{name}': referenced by {', '.join(self.dependents)}"
        )

    @property
    def names(self) -> list[str]:
        return [self.name] + self.dependents


class UnknownNameError(ParserError):
    """Raised when a name is found in neither the private nor the shared pool."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"CTE not found: {name}")

    @property
    def names(self) -> list[str]:
        return [self.name]


class InvalidCteNameError(ParserError):
    """Raised when a sub-query name is not a plain SQL identifier."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(
            f"Invalid CTE name: {name!r}. Must start with a letter or underscore "
            "and contain only letters, numbers, and underscores."
        )

    @property
    def names(self) -> list[str]:
        return [self.name]


class CompositionRenderError(ParserError):
    """Raised when assembled SQL fails structural validation."""

    def __init__(self, message: str, names: list[str] | None = None):
        super().__init__(message)
        self.names = list(names or [])


class StorageError(ParserError):
    """Raised when a CTE pool cannot read or write its backing store."""

    pass
