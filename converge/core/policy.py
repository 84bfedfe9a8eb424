from dataclasses import dataclass
from typing import Tuple

from converge.core.model import DependencyNode
from converge.core.patterns import Pattern, matches_any, parse_patterns


@dataclass(frozen=True)
class FilterRules:
    excludes: Tuple[Pattern, ...] = ()
    includes: Tuple[Pattern, ...] = ()

    @classmethod
    def from_strings(cls, excludes=None, includes=None) -> 'FilterRules':
        return cls(parse_patterns(excludes), parse_patterns(includes))


class ConvergencePolicy:
    """
    Decides whether a node's version must converge.

    Includes are a carve-out from a wide exclude list ("xerces" excluded,
    "xerces:xerces-api" included). Once any include is configured it is the
    only thing consulted, whether or not excludes exist.
    """

    def __init__(self, rules: FilterRules) -> None:
        self.rules = rules

    def requires_convergence(self, node: DependencyNode) -> bool:
        if self.rules.includes:
            return matches_any(self.rules.includes, node.artifact)
        if self.rules.excludes:
            return not matches_any(self.rules.excludes, node.artifact)
        return True

    __call__ = requires_convergence
