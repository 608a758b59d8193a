"""Template rendering for notification titles and bodies.

Placeholders use ``{name}`` or ``{{name}}`` syntax. Names may be dotted
paths (``{event.title}``, ``{attendees.0}``) walked through mappings,
sequences and public object attributes. Unresolved placeholders are left in the
output verbatim and logged; rendering never fails on missing data.
"""

import re
from typing import Any, List, Mapping, Optional, Sequence

from infrastructure.logging import get_module_logger

logger = get_module_logger()

_PATH = r"\w+(?:\.\w+)*"
PLACEHOLDER_PATTERN = re.compile(
    r"\{\{\s*(?P<double>" + _PATH + r")\s*\}\}|\{(?P<single>" + _PATH + r")\}"
)

_MISSING = object()


def resolve_path(data: Any, path: str) -> Any:
    """Walk a dotted path through nested data.

    Returns a sentinel when any segment is missing or a value is None.
    """
    current = data
    for segment in path.split("."):
        if current is None:
            return _MISSING
        if isinstance(current, Mapping):
            if segment not in current:
                return _MISSING
            current = current[segment]
        elif isinstance(current, Sequence) and not isinstance(current, (str, bytes)):
            if not segment.isdigit() or int(segment) >= len(current):
                return _MISSING
            current = current[int(segment)]
        else:
            # Private and dunder attributes never resolve
            if segment.startswith("_") or not hasattr(current, segment):
                return _MISSING
            current = getattr(current, segment)
    if current is None:
        return _MISSING
    return current


class TemplateEngine:
    """Renders placeholder patterns against a data mapping."""

    def extract_variables(self, pattern: str) -> List[str]:
        """List placeholder names in order of first appearance."""
        names: List[str] = []
        for match in PLACEHOLDER_PATTERN.finditer(pattern):
            name = match.group("double") or match.group("single")
            if name not in names:
                names.append(name)
        return names

    def find_missing_variables(
        self, pattern: str, data: Optional[Mapping[str, Any]]
    ) -> List[str]:
        """List placeholder names that do not resolve against data."""
        data = data or {}
        return [
            name
            for name in self.extract_variables(pattern)
            if resolve_path(data, name) is _MISSING
        ]

    def render(self, pattern: str, data: Optional[Mapping[str, Any]]) -> str:
        """Substitute every resolvable placeholder in pattern.

        Args:
            pattern: Text containing ``{name}`` / ``{{name}}`` placeholders
            data: Values to substitute; nested mappings are walked by path

        Returns:
            The rendered text. Unresolved placeholders are kept as written.
        """
        data = data or {}

        def substitute(match: re.Match) -> str:
            name = match.group("double") or match.group("single")
            value = resolve_path(data, name)
            if value is _MISSING:
                logger.warning("template_variable_unresolved", variable=name)
                return match.group(0)
            return str(value)

        return PLACEHOLDER_PATTERN.sub(substitute, pattern)
