import json
import logging
from converge.core.model import ArtifactCoordinate, DependencyNode
from converge.managers.base import ManagerError, PackageManager

UNSCOPED_GROUP = "npm"


def npm_coordinate(name: str, version: str) -> ArtifactCoordinate:
    """@scope/pkg maps to scope:pkg, everything else to npm:pkg."""
    if name.startswith("@") and "/" in name:
        scope, pkg = name[1:].split("/", 1)
        return ArtifactCoordinate(scope, pkg, version)
    return ArtifactCoordinate(UNSCOPED_GROUP, name, version)


class NodeManager(PackageManager):
    @property
    def name(self) -> str:
        return "NPM"

    @property
    def lock_files(self) -> list[str]:
        return ["package-lock.json"]

    def get_dependency_tree(self) -> DependencyNode:
        logging.debug("Parsing package-lock.json...")
        try:
            with open("package-lock.json", "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise ManagerError(f"Error reading package-lock.json: {e}")

        if "packages" in data:
            return self._parse_packages(data)
        return self._parse_nested(data)

    def _parse_nested(self, data):
        """lockfileVersion 1: nested `dependencies` mirror node_modules."""
        root_name = data.get("name", "package-lock")

        def build_tree(name, current_data, depth=0):
            node = DependencyNode(npm_coordinate(name, current_data.get("version", "")), expanded=(depth == 0))

            for dep_name, dep_data in current_data.get("dependencies", {}).items():
                node.add_child(build_tree(dep_name, dep_data, depth + 1))
            return node

        return build_tree(root_name, data)

    def _parse_packages(self, data):
        """lockfileVersion 2/3: flat `packages` map keyed by node_modules path."""
        packages = data["packages"]
        root_data = packages.get("", {})
        root_name = root_data.get("name") or data.get("name", "package-lock")

        expanded = set()

        def resolve(from_path, dep_name):
            # Node module resolution: nearest node_modules walking up from the requiring package
            base = from_path
            while True:
                candidate = f"{base}/node_modules/{dep_name}" if base else f"node_modules/{dep_name}"
                if candidate in packages:
                    return candidate
                if not base:
                    return None
                idx = base.rfind("/node_modules/")
                base = base[:idx] if idx >= 0 else ""

        def build_tree(path, name, ancestors):
            pkg = packages.get(path, {})
            node = DependencyNode(npm_coordinate(name, pkg.get("version", "")))

            if path in ancestors:
                node.cycle = True
                return node
            if path in expanded:
                return node
            expanded.add(path)

            requires = {}
            requires.update(pkg.get("dependencies", {}))
            requires.update(pkg.get("optionalDependencies", {}))
            for dep_name in requires:
                dep_path = resolve(path, dep_name)
                if dep_path is None:
                    logging.debug(f"{name}: dependency {dep_name} is not installed, skipping.")
                    continue
                node.add_child(build_tree(dep_path, dep_name, ancestors | {path}))
            return node

        root = DependencyNode(npm_coordinate(root_name, root_data.get("version", "")), expanded=True)
        direct = {}
        direct.update(root_data.get("dependencies", {}))
        direct.update(root_data.get("devDependencies", {}))
        direct.update(root_data.get("optionalDependencies", {}))

        for dep_name in direct:
            dep_path = resolve("", dep_name)
            if dep_path is None:
                logging.debug(f"Direct dependency {dep_name} is not installed, skipping.")
                continue
            root.add_child(build_tree(dep_path, dep_name, frozenset({""})))

        logging.debug(f"NPM tree built. {len(expanded)} packages expanded.")
        return root
