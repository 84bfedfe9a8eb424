import logging
import os
from .base import ManagerError, PackageManager
from .go import GoManager
from .javascript import NodeManager
from .maven import MavenManager, parse_tree_file
from .rust import RustManager

MANAGERS = [
    MavenManager(),
    GoManager(),
    NodeManager(),
    RustManager(),
]


def detect_manager():
    """Checks files in the current directory and returns the correct manager."""
    files = os.listdir(".")

    for manager in MANAGERS:
        if manager.detect(files):
            return manager

    return None


def load_tree(tree_file=None):
    """Returns (source name, root node) from a tree file or the detected project."""
    if tree_file:
        return "Maven (file)", parse_tree_file(tree_file)

    manager = detect_manager()
    if not manager:
        raise ManagerError("No supported project found.")

    logging.info(f"Manager: {manager.name}")
    return manager.name, manager.get_dependency_tree()
