import os
import sys
import logging
from typing import Dict, List, Optional, Tuple
from converge.core.model import ArtifactCoordinate, DependencyNode
from converge.managers.base import ManagerError, PackageManager

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

CRATES_GROUP = "crates.io"


class RustManager(PackageManager):
    @property
    def name(self) -> str:
        return "Cargo (Rust)"

    @property
    def lock_files(self) -> list[str]:
        return ["Cargo.lock"]

    def get_dependency_tree(self) -> DependencyNode:
        if not os.path.exists("Cargo.lock"):
            raise ManagerError("Cargo.lock not found.")

        logging.debug("Parsing Cargo.lock...")
        try:
            with open("Cargo.lock", "rb") as f:
                data = tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError) as e:
            raise ManagerError(f"Error reading Cargo.lock: {e}")

        return self._build(data.get("package", []))

    def _build(self, packages: List[dict]) -> DependencyNode:
        # Several versions of one crate may coexist, so key by (name, version)
        pkg_lookup: Dict[Tuple[str, str], dict] = {}
        versions_by_name: Dict[str, List[str]] = {}

        for pkg in packages:
            name = pkg.get("name")
            version = pkg.get("version")
            if name and version:
                pkg_lookup[(name, version)] = pkg
                versions_by_name.setdefault(name, []).append(version)

        def resolve(dep_entry: str) -> Optional[Tuple[str, str]]:
            # "name", "name version" or "name version (source)"
            parts = dep_entry.split()
            dep_name = parts[0]
            if len(parts) >= 2:
                return dep_name, parts[1]
            candidates = versions_by_name.get(dep_name, [])
            if len(candidates) == 1:
                return dep_name, candidates[0]
            logging.warning(f"Cannot resolve Cargo dependency '{dep_entry}'.")
            return None

        expanded = set()

        def build_tree(pkg_id, ancestors):
            name, version = pkg_id
            node = DependencyNode(ArtifactCoordinate(CRATES_GROUP, name, version))

            if pkg_id in ancestors:
                node.cycle = True
                return node
            if pkg_id in expanded:
                return node
            expanded.add(pkg_id)

            pkg_data = pkg_lookup.get(pkg_id, {})
            for dep_entry in pkg_data.get("dependencies", []):
                dep_id = resolve(dep_entry)
                if dep_id is not None:
                    node.add_child(build_tree(dep_id, ancestors | {pkg_id}))
            return node

        roots = [(p["name"], p["version"]) for p in packages if "source" not in p and "name" in p and "version" in p]

        if len(roots) == 1:
            root_node = build_tree(roots[0], frozenset())
        else:
            # Workspace: a synthetic root owning every member crate
            project_name = os.path.basename(os.getcwd()) or "workspace"
            root_node = DependencyNode(ArtifactCoordinate(CRATES_GROUP, project_name, "workspace"))
            for root_id in roots:
                root_node.add_child(build_tree(root_id, frozenset()))

        root_node.expanded = True
        logging.debug(f"Cargo tree built. {len(pkg_lookup)} packages, {len(expanded)} expanded.")
        return root_node
