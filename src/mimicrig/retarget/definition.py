"""Mapping definition records and retarget options."""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Optional


class PositionMethod(Enum):
    """How a mapped joint's position follows the source."""
    INHERITED = "inherited"  # keep the reference position, rotation only
    SCALED = "scaled"        # follow the source offset scaled by bone length ratio


class RetargetMode(Enum):
    """Which source pose drives mapped joints."""
    REFERENCE_POSE = auto()    # ignore the source, hold the reference pose
    SOURCE_BIND_POSE = auto()  # sample the source at its bind pose
    SOURCE_ANIMATED = auto()   # sample the source's current pose


class MatchField(Enum):
    """Which side of a mapping row is compared against hierarchy node names."""
    TARGET = auto()
    SOURCE = auto()  # the walked hierarchy mirrors the source skeleton


@dataclass(frozen=True)
class MappingRow:
    source: str
    target: str
    method: PositionMethod = PositionMethod.SCALED

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MappingRow":
        if not isinstance(data, dict):
            raise ValueError(f"Mapping row must be an object, got {type(data).__name__}")
        source = data.get("source")
        target = data.get("target")
        if not isinstance(source, str) or not isinstance(target, str):
            raise ValueError(f"Mapping row needs string 'source' and 'target': {data!r}")
        method = data.get("method")
        if method is None:
            return cls(source, target)
        try:
            return cls(source, target, PositionMethod(method))
        except ValueError:
            raise ValueError(f"Unknown mapping method {method!r} for {source} -> {target}") from None


@dataclass(frozen=True)
class ChainEnds:
    """A joint chain named by its first and last node."""
    first: str
    last: str = ""

    @property
    def last_or_first(self) -> str:
        return self.last or self.first

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ChainEnds":
        first = data.get("first", "")
        last = data.get("last", "")
        if not isinstance(first, str) or not isinstance(last, str):
            raise ValueError(f"Chain ends must be strings: {data!r}")
        return cls(first, last)


@dataclass(frozen=True)
class ChainDefinition:
    source: ChainEnds
    target: ChainEnds
    enabled: bool = True

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ChainDefinition":
        try:
            source = ChainEnds.from_dict(data["source"])
            target = ChainEnds.from_dict(data["target"])
        except (KeyError, TypeError, AttributeError) as e:
            raise ValueError(f"Chain needs 'source' and 'target' objects: {data!r}") from e
        return cls(source, target, bool(data.get("enabled", True)))


@dataclass
class MappingDefinition:
    """Source-to-target joint mapping, read once at setup."""
    target_root: str = ""
    mappings: list[MappingRow] = field(default_factory=list)
    includes: Optional[list[str]] = None
    chains: list[ChainDefinition] = field(default_factory=list)
    debugging_source_copy_beginning: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MappingDefinition":
        """Parse the camelCase JSON schema.

        Raises:
            ValueError: on missing keys or values of the wrong type.
        """
        if not isinstance(data, dict):
            raise ValueError("Mapping definition must be a JSON object")
        target_root = data.get("targetRoot", "")
        if not isinstance(target_root, str):
            raise ValueError("'targetRoot' must be a string")
        rows = data.get("mappings")
        if not isinstance(rows, list):
            raise ValueError("'mappings' must be a list")
        includes = data.get("includes")
        if includes is not None and (
            not isinstance(includes, list) or not all(isinstance(s, str) for s in includes)
        ):
            raise ValueError("'includes' must be a list of strings")
        chains = data.get("chains", [])
        if not isinstance(chains, list):
            raise ValueError("'chains' must be a list")
        beginning = data.get("debuggingSourceCopyBeginning", "")
        if not isinstance(beginning, str):
            raise ValueError("'debuggingSourceCopyBeginning' must be a string")
        return cls(
            target_root=target_root,
            mappings=[MappingRow.from_dict(r) for r in rows],
            includes=list(includes) if includes is not None else None,
            chains=[ChainDefinition.from_dict(c) for c in chains],
            debugging_source_copy_beginning=beginning,
        )

    def find_row(self, name: str, match: MatchField = MatchField.TARGET) -> Optional[MappingRow]:
        """First row whose target (or source) equals ``name``."""
        for row in self.mappings:
            key = row.target if match is MatchField.TARGET else row.source
            if key == name:
                return row
        return None

    def is_included(self, source_name: str) -> bool:
        return self.includes is None or source_name in self.includes
