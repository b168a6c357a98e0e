from pathlib import Path
from typing import Iterable, List

from gitdrill.export.content import NullContentStore
from gitdrill.extractors.base import Capability, Extractor
from gitdrill.records.models import FileContentVertex, Meta
from gitdrill.repository.models import File

COMMIT_CONTENT_EXTRACTOR_NAME = "CommitContentExtractor"


class FileInventoryExtractor(Extractor):
    """One row per file of every commit's full tree snapshot.

    File bytes are copied to the content store while commits are consumed,
    not at export time.
    """

    capabilities = frozenset({Capability.FILE_INVENTORY})

    output = "data/file-content.parquet"

    def __init__(self, content_store=None, name: str = COMMIT_CONTENT_EXTRACTOR_NAME):
        super().__init__(name)
        self.content_store = content_store or NullContentStore()
        self.file_data: List[FileContentVertex] = []

    def reset(self, repository_name: str):
        super().reset(repository_name)
        self.file_data = []

    def append_file_content_vertices(self, rows: Iterable[FileContentVertex]):
        self.file_data.extend(rows)

    def copy_file(self, file: File):
        self.content_store.copy(file)

    def export(self, sink) -> List[Path]:
        return [sink.write(self.output, FileContentVertex.schema, self.file_data)]

    def get_meta_info(self) -> List[Meta]:
        return [Meta.for_schema("file-content", self.operational_level, self.output, FileContentVertex.schema)]
