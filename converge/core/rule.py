import logging
from dataclasses import dataclass, field
from typing import Dict, List

from converge.core.config import RuleConfig
from converge.core.model import DependencyNode
from converge.core.policy import ConvergencePolicy, FilterRules
from converge.core.report import build_report, build_reports
from converge.core.version_map import VersionMap


class ConvergenceError(Exception):
    """Raised at the boundary when a check found conflicts."""

    def __init__(self, result: 'CheckResult') -> None:
        super().__init__(result.error_message())
        self.result = result


@dataclass
class CheckResult:
    conflicts: Dict[str, List[DependencyNode]] = field(default_factory=dict)
    messages: List[str] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return not self.conflicts

    def error_message(self) -> str:
        if self.passed:
            return ""
        return "Failed while enforcing releasability the error(s) are [" + ", ".join(self.messages) + "]"

    def raise_for_conflicts(self) -> None:
        if not self.passed:
            raise ConvergenceError(self)


class ConvergenceRule:
    """
    Checks that every eligible artifact in a dependency tree resolves to a
    single version. The logger and message formatter are injected so a single
    check run owns all of its collaborators.
    """

    def __init__(self, config: RuleConfig = None, log: logging.Logger = None, formatter=None) -> None:
        self.config = config or RuleConfig()
        self.log = log or logging.getLogger("converge")
        self.formatter = formatter or build_report
        self.rules = FilterRules.from_strings(self.config.excludes, self.config.includes)

    def check(self, root: DependencyNode) -> CheckResult:
        version_map = VersionMap(ConvergencePolicy(self.rules), unique_versions=self.config.unique_versions)
        root.accept(version_map)

        conflicts = version_map.conflicts()
        messages = build_reports(conflicts, self.formatter)
        for message in messages:
            self.log.warning(message)

        self.log.debug(f"Checked {len(version_map)} artifacts, {len(conflicts)} conflicted.")
        return CheckResult(conflicts, messages)
