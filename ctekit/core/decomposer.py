"""
Decomposition of a statement with a WITH clause into a main model and sub models.
"""

import logging
from dataclasses import dataclass, field

from ctekit.core.composer import SqlComposer
from ctekit.core.entities import CteEntity, ModelKind, SqlModel
from ctekit.parser.analysis.cte_extractor import CteExtractor
from ctekit.parser.analysis.dependency_graph import DependencyGraphBuilder
from ctekit.parser.analysis.dependency_scanner import DependencyScanner
from ctekit.parser.parsers.sql_parser import SQLParser
from ctekit.parser.shared.exceptions import UnknownNameError
from ctekit.parser.shared.types import DependencyGraph, ExecutionOrder

logger = logging.getLogger(__name__)


@dataclass
class DecompositionResult:
    """Exactly one main model plus the sub models of its WITH clause."""

    main_model: SqlModel
    sub_models: list[SqlModel] = field(default_factory=list)
    recursive: bool = False

    @property
    def models(self) -> list[SqlModel]:
        return [self.main_model] + self.sub_models

    def get_model(self, name: str) -> SqlModel:
        for model in self.models:
            if model.name == name:
                return model
        raise UnknownNameError(name)

    def dependency_graph(self) -> DependencyGraph:
        """Adjacency map of the sub models."""
        return {model.name: model.dependency_names for model in self.sub_models}

    def execution_order(self) -> ExecutionOrder:
        """Sub model names, dependencies first."""
        graph = self.dependency_graph()
        return DependencyGraphBuilder().topological_order(list(graph), graph)

    def to_entities(self) -> list[CteEntity]:
        """Flat pool content replacing a workspace's private pool."""
        return [model.to_entity() for model in self.sub_models]


class SqlDecomposer:
    """Splits one statement into independently editable models."""

    def __init__(
        self,
        parser: SQLParser | None = None,
        graph_builder: DependencyGraphBuilder | None = None,
    ):
        self.parser = parser or SQLParser()
        self.extractor = CteExtractor(self.parser)
        self.scanner = DependencyScanner(self.parser)
        self.graph_builder = graph_builder or DependencyGraphBuilder(
            self.scanner, max_depth=self.parser.max_depth
        )

    def decompose(self, sql: str, model_name: str) -> DecompositionResult:
        """
        Decompose SQL with a WITH clause into a main model and sub models.

        Args:
            sql: Full SQL statement, possibly containing a WITH clause
            model_name: Name given to the main model

        Returns:
            DecompositionResult with dependency edges wired between models

        Raises:
            SQLParsingError: If the statement is malformed
            CircularDependencyError: If the sub-queries reference each other in a cycle
        """
        extraction = self.extractor.extract(sql)

        if not extraction.has_ctes:
            logger.info(f"No CTEs found in {model_name}, returning single main model")
            return DecompositionResult(
                main_model=SqlModel(ModelKind.MAIN, model_name, extraction.remainder_sql)
            )

        # First pass: create every node so forward references can be wired
        models: dict[str, SqlModel] = {}
        for definition in extraction.definitions:
            models[definition.name] = SqlModel(
                kind=ModelKind.SUB,
                name=definition.name,
                body_sql=definition.body_sql,
                declared_columns=list(definition.declared_columns),
                columns=list(definition.columns),
            )

        # Second pass: edges, scoped to names of this same WITH clause
        sibling_names = set(models)
        for model in models.values():
            for name in self.scanner.scan_restricted(
                model.body_sql, sibling_names, exclude=model.name, strict=True
            ):
                model.add_dependency(models[name])

        main_model = SqlModel(ModelKind.MAIN, model_name, extraction.remainder_sql)
        for name in self.scanner.scan_restricted(
            extraction.remainder_sql, sibling_names, strict=True
        ):
            main_model.add_dependency(models[name])

        result = DecompositionResult(
            main_model=main_model,
            sub_models=list(models.values()),
            recursive=extraction.recursive,
        )

        graph = result.dependency_graph()
        self.graph_builder.topological_order(list(graph), graph)

        logger.info(
            f"Decomposed {model_name} into {len(result.sub_models)} CTEs, "
            f"main depends on {main_model.dependency_names}"
        )
        return result

    def reconstruct_sql(
        self, result: DecompositionResult, composer: SqlComposer | None = None
    ) -> str:
        """Reassemble the main model of a decomposition."""
        composer = composer or SqlComposer(self.parser, self.graph_builder)
        return composer.reconstruct_sql(result.main_model)
