from pathlib import Path
from typing import List

from gitdrill.extractors.base import Capability, Extractor
from gitdrill.records.models import CommitEdge, CommitVertex, Meta

COMMIT_HISTORY_EXTRACTOR_NAME = "CommitHistoryExtractor"


class CommitGraphExtractor(Extractor):
    """Buffers the commit DAG as vertex and edge tables."""

    capabilities = frozenset({Capability.COMMIT_GRAPH})

    vertex_output = "data/commit-vertices.parquet"
    edge_output = "data/commit-edges.parquet"

    def __init__(self, name: str = COMMIT_HISTORY_EXTRACTOR_NAME):
        super().__init__(name)
        self.vertex_data: List[CommitVertex] = []
        self.edge_data: List[CommitEdge] = []

    def reset(self, repository_name: str):
        super().reset(repository_name)
        self.vertex_data = []
        self.edge_data = []

    def append_commit_vertex(self, vertex: CommitVertex):
        self.vertex_data.append(vertex)

    def append_commit_edges(self, commit_hash: str, parent_hashes: List[str]):
        for parent in parent_hashes:
            self.edge_data.append(CommitEdge(commit_hash=commit_hash, parent_commit_hash=parent))

    def export(self, sink) -> List[Path]:
        return [
            sink.write(self.vertex_output, CommitVertex.schema, self.vertex_data),
            sink.write(self.edge_output, CommitEdge.schema, self.edge_data),
        ]

    def get_meta_info(self) -> List[Meta]:
        return [
            Meta.for_schema("commit-vertices", self.operational_level, self.vertex_output, CommitVertex.schema),
            Meta.for_schema("commit-edges", self.operational_level, self.edge_output, CommitEdge.schema),
        ]
