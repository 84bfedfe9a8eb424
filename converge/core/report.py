from typing import Dict, List

from converge.core.model import DependencyNode


def node_path(node: DependencyNode) -> List[DependencyNode]:
    """Nodes from the tree root down to `node`, inclusive."""
    path = []
    current = node
    while current is not None:
        path.append(current)
        current = current.parent
    path.reverse()
    return path


def render_path(node: DependencyNode) -> str:
    lines = []
    for depth, step in enumerate(node_path(node)):
        lines.append(f"{'  ' * depth}+-{step.artifact}\n")
    return "".join(lines)


def build_report(nodes: List[DependencyNode]) -> str:
    header = f"\nDependency convergence error for {nodes[0].artifact} paths to dependency are:\n"
    return header + "and\n".join(render_path(node) for node in nodes)


def build_reports(conflicts: Dict[str, List[DependencyNode]], formatter=build_report) -> List[str]:
    return [formatter(nodes) for nodes in conflicts.values() if nodes]
