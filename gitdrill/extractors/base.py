from abc import ABC, abstractmethod
from enum import Enum
from pathlib import Path
from typing import FrozenSet, List

from gitdrill.records.models import Meta

COMMIT_LEVEL = "commit"


class Capability(str, Enum):
    COMMIT_GRAPH = "commit_graph"
    FILE_INVENTORY = "file_inventory"
    STRUCTURE_SUMMARY = "structure_summary"


class Extractor(ABC):
    """A pluggable unit that buffers records for the commits it is fed.

    The engine routes each commit to one extraction routine per entry of
    `capabilities`; an extractor must provide the append hooks belonging
    to every capability it declares.
    """

    capabilities: FrozenSet[Capability] = frozenset()

    def __init__(self, name: str, operational_level: str = COMMIT_LEVEL):
        self.name = name
        self.operational_level = operational_level
        self.repository_name = ""

    def reset(self, repository_name: str):
        """Drops buffered records before a new analysis run."""
        self.repository_name = repository_name

    @abstractmethod
    def export(self, sink) -> List[Path]:
        pass

    @abstractmethod
    def get_meta_info(self) -> List[Meta]:
        pass

    def __repr__(self):
        kinds = ",".join(sorted(c.value for c in self.capabilities))
        return f"{type(self).__name__}(name={self.name!r}, capabilities={kinds})"
