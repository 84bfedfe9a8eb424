import weakref
from dataclasses import dataclass, field
from typing import List, Optional


class InvalidNodeError(ValueError):
    """Raised when a tree node breaks the input contract (e.g. has no artifact)."""


@dataclass(frozen=True)
class ArtifactCoordinate:
    group_id: str
    artifact_id: str
    version: str

    @property
    def key(self) -> str:
        """Identity used for convergence: group and artifact, never version."""
        return f"{self.group_id}:{self.artifact_id}"

    def __str__(self) -> str:
        return f"{self.group_id}:{self.artifact_id}:{self.version}"


@dataclass(eq=False)
class DependencyNode:
    artifact: Optional[ArtifactCoordinate]
    children: List['DependencyNode'] = field(default_factory=list)

    # Set when a resolver cut a dependency cycle at this node
    cycle: bool = False

    # UI
    expanded: bool = False

    _parent: Optional[weakref.ref] = field(default=None, init=False, repr=False)

    def __post_init__(self) -> None:
        for child in self.children:
            child._parent = weakref.ref(self)

    @property
    def parent(self) -> Optional['DependencyNode']:
        if self._parent is None:
            return None
        return self._parent()

    def add_child(self, child: 'DependencyNode') -> 'DependencyNode':
        child._parent = weakref.ref(self)
        self.children.append(child)
        return child

    @property
    def depth(self) -> int:
        depth = 0
        node = self.parent
        while node is not None:
            depth += 1
            node = node.parent
        return depth

    def accept(self, visitor) -> bool:
        """
        Pre-order walk: this node first, then each child in order.
        Returning False from visitor.visit() skips that node's children only.
        """
        if self.artifact is None:
            raise InvalidNodeError("Dependency node has no artifact coordinate.")

        if visitor.visit(self):
            for child in self.children:
                child.accept(visitor)
        return True

    def __str__(self) -> str:
        return str(self.artifact)
