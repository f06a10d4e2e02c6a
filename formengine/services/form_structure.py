"""Form definition structure checks.

This module inspects a form definition when it is loaded or synced:
- Conditions only reference fields that exist in the form
- Custom validation patterns compile
- Option-based fields have options
- Field visibility conditions do not depend on each other in a cycle
"""

from collections import defaultdict
from typing import Dict, List, Optional, Set

from formengine.schemas.condition import referenced_fields
from formengine.schemas.form import FormDefinition
from formengine.services.validation import compile_pattern
from formengine.logging_config import get_logger

logger = get_logger(__name__)


class FormStructureError(Exception):
    """Raised when a form definition cannot be used as written."""
    pass


class FormStructureChecker:
    """Service for checking form definitions before they are stored."""

    @staticmethod
    def check(form: FormDefinition) -> List[str]:
        """Check a form definition's structure.

        Problems that only degrade behaviour are returned (and logged) as
        warnings. Circular field visibility is an error because no order of
        filling in the form can reveal the fields involved.

        Args:
            form: Form definition to check

        Returns:
            Warning messages (empty when the form is clean)

        Raises:
            FormStructureError: If field visibility conditions form a cycle

        Example:
            >>> form = loader.load_form("contact")
            >>> FormStructureChecker.check(form)
            []
        """
        warnings: List[str] = []
        known_fields = {f.name for f in form.all_fields()}

        for step in form.steps:
            for name in sorted(referenced_fields(step.condition) - known_fields):
                warnings.append(
                    f"Step '{step.name}' condition references unknown field '{name}'"
                )

            for field in step.fields:
                for name in sorted(referenced_fields(field.condition) - known_fields):
                    warnings.append(
                        f"Field '{field.name}' condition references unknown field '{name}'"
                    )

                pattern = field.validation.pattern
                if pattern is not None and compile_pattern(pattern) is None:
                    warnings.append(
                        f"Field '{field.name}' pattern does not compile and will be ignored"
                    )

                if field.value_type.requires_options and not field.options:
                    warnings.append(
                        f"Field '{field.name}' of type {field.value_type.value} has no options"
                    )

        graph = FormStructureChecker._build_graph(form)
        cycle = FormStructureChecker._find_cycle(graph)
        if cycle:
            raise FormStructureError(
                f"Form '{form.slug}' has circular field conditions: {' -> '.join(cycle)}"
            )

        for warning in warnings:
            logger.warning(f"Form '{form.slug}': {warning}")

        logger.info(f"Form '{form.slug}' checked with {len(warnings)} warning(s)")
        return warnings

    @staticmethod
    def _build_graph(form: FormDefinition) -> Dict[str, List[str]]:
        """Build field -> fields-its-condition-reads adjacency lists.

        Args:
            form: Form to analyze

        Returns:
            Dictionary mapping field name -> referenced field names
        """
        known_fields = {f.name for f in form.all_fields()}
        graph: Dict[str, List[str]] = defaultdict(list)

        for field in form.all_fields():
            for name in sorted(referenced_fields(field.condition)):
                if name in known_fields:
                    graph[field.name].append(name)

        return graph

    @staticmethod
    def _find_cycle(graph: Dict[str, List[str]]) -> Optional[List[str]]:
        """Find a dependency cycle using DFS.

        Args:
            graph: Adjacency list representation

        Returns:
            The field names along the cycle (first name repeated at the end),
            or None if the graph is acyclic
        """
        visited: Set[str] = set()
        path: List[str] = []
        on_path: Set[str] = set()

        def dfs(node: str) -> Optional[List[str]]:
            """Depth-first search with recursion stack tracking."""
            visited.add(node)
            path.append(node)
            on_path.add(node)

            for neighbor in graph.get(node, []):
                if neighbor in on_path:
                    # Back edge found = cycle
                    return path[path.index(neighbor):] + [neighbor]
                if neighbor not in visited:
                    found = dfs(neighbor)
                    if found:
                        return found

            path.pop()
            on_path.remove(node)
            return None

        for node in list(graph):
            if node not in visited:
                found = dfs(node)
                if found:
                    return found

        return None
