import logging
from dataclasses import dataclass
from typing import Tuple

from converge.core.model import ArtifactCoordinate

WILDCARD = "*"
MAX_SEGMENTS = 3


@dataclass(frozen=True)
class Pattern:
    """
    Artifact pattern in the form groupId[:artifactId][:version].
    Any segment may be '*'. Only groupId and artifactId take part in matching;
    the version segment is parsed but ignored.
    """
    segments: Tuple[str, ...]
    raw: str = ""

    @classmethod
    def parse(cls, text: str) -> 'Pattern':
        segments = tuple(s.strip() for s in text.split(":"))
        # A bare "" splits to ("",) and means no segments at all
        if segments == ("",):
            segments = ()
        return cls(segments, raw=text)

    @property
    def is_valid(self) -> bool:
        if not self.segments or len(self.segments) > MAX_SEGMENTS:
            return False
        return all(self.segments)

    def matches(self, artifact: ArtifactCoordinate) -> bool:
        if not self.is_valid:
            return False

        group = self.segments[0]
        if group != WILDCARD and group != artifact.group_id:
            return False

        if len(self.segments) > 1:
            name = self.segments[1]
            if name != WILDCARD and name != artifact.artifact_id:
                return False

        return True

    def __str__(self) -> str:
        return self.raw or ":".join(self.segments)


def parse_patterns(texts) -> Tuple[Pattern, ...]:
    patterns = []
    for text in texts or ():
        pattern = Pattern.parse(text)
        if not pattern.is_valid:
            logging.warning(f"Ignoring malformed artifact pattern '{text}': it will match nothing.")
        patterns.append(pattern)
    return tuple(patterns)


def matches_any(patterns, artifact: ArtifactCoordinate) -> bool:
    for pattern in patterns:
        if pattern.matches(artifact):
            return True
    return False
