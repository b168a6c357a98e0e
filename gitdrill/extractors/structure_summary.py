from pathlib import Path
from typing import List, Optional

from gitdrill.extractors.base import Capability, Extractor
from gitdrill.records.models import Meta, StructureSummary

STRUCTURE_INFO_EXTRACTOR_NAME = "StructureInfoExtractor"


class StructureSummaryExtractor(Extractor):
    """Accumulates per-commit file counts.

    The total is a cumulative sum over all walked commits. The latest count
    is the one of the first commit fed in, which is the newest in walk order.
    """

    capabilities = frozenset({Capability.STRUCTURE_SUMMARY})

    output = "data/structure-summary.parquet"

    def __init__(self, name: str = STRUCTURE_INFO_EXTRACTOR_NAME):
        super().__init__(name)
        self._reset_counts()

    def _reset_counts(self):
        self.commit_count = 0
        self.total_file_count = 0
        self.max_file_count = 0
        self.latest_file_count: Optional[int] = None

    def reset(self, repository_name: str):
        super().reset(repository_name)
        self._reset_counts()

    def add_file_count(self, count: int):
        self.commit_count += 1
        self.total_file_count += count
        self.max_file_count = max(self.max_file_count, count)
        if self.latest_file_count is None:
            self.latest_file_count = count

    @property
    def summary(self) -> StructureSummary:
        return StructureSummary(
            repository_name=self.repository_name,
            commit_count=self.commit_count,
            total_file_count=self.total_file_count,
            max_file_count=self.max_file_count,
            latest_file_count=self.latest_file_count or 0,
        )

    def export(self, sink) -> List[Path]:
        return [sink.write(self.output, StructureSummary.schema, [self.summary])]

    def get_meta_info(self) -> List[Meta]:
        return [Meta.for_schema("structure-summary", self.operational_level, self.output, StructureSummary.schema)]
