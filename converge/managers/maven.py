import logging
import os
import re
import subprocess
import tempfile
from typing import List

from converge.core.model import ArtifactCoordinate, DependencyNode
from converge.managers.base import ManagerError, PackageManager

SCOPES = {"compile", "provided", "runtime", "test", "system", "import"}

# "|  |  +- g:a:jar:1.0:compile", "   \- (g:a:jar:1.0:compile - omitted for conflict with 1.1)"
RE_CHILD = re.compile(r'^((?:[| ]  )*)[+\\]- (.*)$')
RE_LOG_PREFIX = re.compile(r'^\[(?:INFO|WARNING|ERROR|DEBUG)\] ?')


class MavenManager(PackageManager):
    @property
    def name(self) -> str:
        return "Maven"

    @property
    def lock_files(self) -> list[str]:
        return ["pom.xml"]

    def get_dependency_tree(self) -> DependencyNode:
        logging.debug("Running mvn dependency:tree ...")

        fd, output_file = tempfile.mkstemp(suffix=".txt", prefix="converge-tree-")
        os.close(fd)
        try:
            # verbose keeps the nodes Maven omitted for conflicts, which are exactly the ones we need
            subprocess.check_output(
                ["mvn", "-B", "-q", "dependency:tree", "-Dverbose",
                 "-DoutputType=text", f"-DoutputFile={output_file}"],
                text=True,
                timeout=300,
                stderr=subprocess.PIPE
            )
            with open(output_file, "r", encoding="utf-8") as f:
                text = f.read()
        except (OSError, subprocess.SubprocessError) as e:
            logging.error(f"Maven Error: {e}")
            raise ManagerError(f"Fail to read Maven dependencies: {e}")
        finally:
            if os.path.exists(output_file):
                os.remove(output_file)

        return parse_tree_text(text)


def parse_tree_file(path: str) -> DependencyNode:
    logging.debug(f"Reading dependency tree from {path}...")
    try:
        with open(path, "r", encoding="utf-8") as f:
            return parse_tree_text(f.read())
    except OSError as e:
        raise ManagerError(f"Error reading {path}: {e}")


def parse_tree_text(text: str) -> DependencyNode:
    """
    Parses the text output of `mvn dependency:tree` into a node tree.
    Accepts either the -DoutputFile form or a saved console transcript:
    log prefixes are stripped and build chatter around the tree is skipped.
    """
    stack: List[DependencyNode] = []
    root = None
    ended = False

    for lineno, raw in enumerate(text.splitlines(), start=1):
        line = RE_LOG_PREFIX.sub("", raw.rstrip())
        if not line.strip():
            continue

        match = RE_CHILD.match(line)
        if match is None:
            artifact = _root_coordinate(line.strip())
            if artifact is None:
                # Banners, "Scanning for projects...", "BUILD SUCCESS"
                if root is not None:
                    ended = True
                continue
            if root is not None:
                raise ManagerError(f"Line {lineno}: second root in dependency tree: {line.strip()}")
            root = DependencyNode(artifact, expanded=True)
            stack = [root]
            continue

        if root is None:
            raise ManagerError(f"Line {lineno}: dependency listed before the project root.")
        if ended:
            raise ManagerError(f"Line {lineno}: dependency listed after the end of the tree.")

        depth = len(match.group(1)) // 3 + 1
        if depth > len(stack):
            raise ManagerError(f"Line {lineno}: unexpected indentation.")

        del stack[depth:]
        node = stack[-1].add_child(DependencyNode(parse_coordinate(match.group(2), lineno)))
        stack.append(node)

    if root is None:
        raise ManagerError("Empty dependency tree.")

    logging.debug(f"Maven tree built. Root {root.artifact}.")
    return root


def _root_coordinate(line: str):
    """The project line is a lone coordinate; anything else is console output."""
    if len(line.split()) != 1:
        return None
    try:
        return parse_coordinate(line)
    except ManagerError:
        return None


def parse_coordinate(text: str, lineno: int = 0) -> ArtifactCoordinate:
    token = text.lstrip("(").split()[0].rstrip(")")
    parts = token.split(":")

    if len(parts) >= 5 and parts[-1] in SCOPES:
        parts = parts[:-1]

    # g:a:v, g:a:type:v, g:a:type:classifier:v
    if len(parts) not in (3, 4, 5) or not all(parts):
        raise ManagerError(f"Line {lineno}: cannot parse artifact '{token}'.")

    return ArtifactCoordinate(parts[0], parts[1], parts[-1])
