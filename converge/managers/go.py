import subprocess
import logging
from converge.core.model import ArtifactCoordinate, DependencyNode
from converge.managers.base import ManagerError, PackageManager

MAIN_MODULE_VERSION = "(devel)"
PSEUDO_MODULES = {"go", "toolchain"}


def go_coordinate(module: str, version: str) -> ArtifactCoordinate:
    """github.com/org/repo maps to github.com/org:repo."""
    if "/" not in module:
        return ArtifactCoordinate(module, module, version)
    group, artifact = module.rsplit("/", 1)
    return ArtifactCoordinate(group, artifact, version)


class GoManager(PackageManager):
    @property
    def name(self) -> str:
        return "Go Modules"

    @property
    def lock_files(self) -> list[str]:
        return ["go.mod"]

    def get_dependency_tree(self) -> DependencyNode:
        logging.debug("Starting reading Go Modules ...")

        try:
            # Get root
            root_name = subprocess.check_output(
                ["go", "list", "-m"],
                text=True,
                timeout=10,
                stderr=subprocess.PIPE
            ).strip()

            # read graph from go mod
            graph_out = subprocess.check_output(
                ["go", "mod", "graph"],
                text=True,
                timeout=30,
                stderr=subprocess.PIPE
            )
            logging.debug(f"Graph obtained. Processing. {len(graph_out)} bytes...")

        except (OSError, subprocess.SubprocessError) as e:
            logging.error(f"Go Error: {e}")
            raise ManagerError(f"Fail to read Go dependencies: {e}")

        return self._build(root_name, graph_out)

    def _build(self, root_name: str, graph_out: str) -> DependencyNode:
        # Keyed by "module@version": the graph lists every required version
        adjacency = {}

        for line in graph_out.splitlines():
            parts = line.split()
            if len(parts) != 2: continue

            parent, child = parts
            if self._split_ver(child)[0] in PSEUDO_MODULES: continue
            adjacency.setdefault(parent, []).append(child)

        logging.debug(f"Start building the tree ...")
        expanded = set()

        def build_tree(module_id, ancestors):
            name, ver = self._split_ver(module_id)
            node = DependencyNode(go_coordinate(name, ver or MAIN_MODULE_VERSION))

            if module_id in ancestors:
                node.cycle = True
                return node
            if module_id in expanded:
                return node
            expanded.add(module_id)

            for child in adjacency.get(module_id, []):
                node.add_child(build_tree(child, ancestors | {module_id}))

            return node

        root_node = build_tree(root_name, frozenset())
        root_node.expanded = True
        logging.debug("Tree successfully constructed.")

        return root_node

    @staticmethod
    def _split_ver(txt):
        if "@" not in txt: return txt, ""
        return tuple(txt.split("@", 1))
