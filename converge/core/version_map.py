import logging
from typing import Callable, Dict, List, Optional

from converge.core.model import DependencyNode


class VersionMap:
    """
    Visitor that groups eligible nodes by groupId:artifactId.

    Each key keeps one node per distinct version, in the order first seen.
    With unique_versions every further occurrence is kept as well, so even
    two identical copies of an artifact count as a conflict.
    """

    def __init__(self, policy: Optional[Callable[[DependencyNode], bool]] = None,
                 unique_versions: bool = False) -> None:
        self.policy = policy
        self.unique_versions = unique_versions
        self._nodes: Dict[str, List[DependencyNode]] = {}
        self._seen = set()

    def visit(self, node: DependencyNode) -> bool:
        if id(node) in self._seen:
            return True
        self._seen.add(id(node))

        if self.policy is not None and not self.policy(node):
            logging.debug(f"Convergence not required for {node.artifact}")
            return True

        self.add(node)
        return True

    def add(self, node: DependencyNode) -> None:
        key = node.artifact.key
        recorded = self._nodes.get(key)

        if recorded is None:
            self._nodes[key] = [node]
            return

        if self.unique_versions:
            recorded.append(node)
            return

        version = node.artifact.version
        if all(n.artifact.version != version for n in recorded):
            recorded.append(node)

    def conflicts(self) -> Dict[str, List[DependencyNode]]:
        return {key: list(nodes) for key, nodes in self._nodes.items() if len(nodes) > 1}

    def __len__(self) -> int:
        return len(self._nodes)
