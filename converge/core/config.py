import logging
import os
import sys
from dataclasses import dataclass, field, replace
from typing import List

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib


class ConfigError(ValueError):
    pass


@dataclass(frozen=True)
class RuleConfig:
    excludes: List[str] = field(default_factory=list)
    includes: List[str] = field(default_factory=list)
    unique_versions: bool = False

    def merged(self, excludes=None, includes=None, unique_versions=False) -> 'RuleConfig':
        """Returns a copy with command-line values appended to the file values."""
        return replace(
            self,
            excludes=list(self.excludes) + list(excludes or []),
            includes=list(self.includes) + list(includes or []),
            unique_versions=self.unique_versions or unique_versions,
        )


def load_config(path: str = "pyproject.toml") -> RuleConfig:
    """Reads the [tool.converge] table. A missing file or table gives the defaults."""
    if not os.path.exists(path):
        return RuleConfig()

    logging.debug(f"Reading configuration from {path}...")
    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML in {path}: {e}")

    section = data.get("tool", {}).get("converge", {})
    unique = section.get("unique-versions", section.get("unique_versions", False))

    return RuleConfig(
        excludes=_as_list(section.get("excludes", []), "excludes"),
        includes=_as_list(section.get("includes", []), "includes"),
        unique_versions=bool(unique),
    )


def _as_list(value, name: str) -> List[str]:
    if isinstance(value, str):
        return [value]
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ConfigError(f"tool.converge.{name} must be a list of strings.")
    return value
