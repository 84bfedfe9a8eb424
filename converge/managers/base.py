from abc import ABC, abstractmethod
from typing import List
from converge.core.model import DependencyNode


class ManagerError(Exception):
    """A dependency tree could not be read or built."""


class PackageManager(ABC):
    """Base class inherited by all ecosystem managers."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Friendly ecosystem name (e.g., Maven, NPM, Cargo)."""
        pass

    @property
    @abstractmethod
    def lock_files(self) -> List[str]:
        """List of exact filenames that mark a supported project."""
        pass

    def detect(self, files: List[str]) -> bool:
        """
        Returns True if this manager supports the current directory.
        Default implementation checks for exact match in lock_files.
        """
        for lock_file in self.lock_files:
            if lock_file in files:
                return True
        return False

    @abstractmethod
    def get_dependency_tree(self) -> DependencyNode:
        """Builds the resolved dependency tree rooted at the project itself."""
        pass
