from dataclasses import asdict, dataclass
from typing import ClassVar, Dict, Tuple

import pyarrow as pa


@dataclass(frozen=True)
class Record:
    """Base for rows written by the export sink."""

    schema: ClassVar[pa.Schema]

    def to_row(self) -> Dict[str, object]:
        return asdict(self)


@dataclass(frozen=True)
class CommitVertex(Record):
    repository_name: str
    commit_hash: str
    author_name: str
    author_mail: str
    author_timestamp: int
    committer_name: str
    committer_mail: str
    committer_timestamp: int
    commit_message: str

    schema: ClassVar[pa.Schema] = pa.schema([
        ("repository_name", pa.string()),
        ("commit_hash", pa.string()),
        ("author_name", pa.string()),
        ("author_mail", pa.string()),
        ("author_timestamp", pa.int64()),
        ("committer_name", pa.string()),
        ("committer_mail", pa.string()),
        ("committer_timestamp", pa.int64()),
        ("commit_message", pa.string()),
    ])

    @property
    def identity(self) -> Tuple[str, str]:
        return (self.repository_name, self.commit_hash)


@dataclass(frozen=True)
class CommitEdge(Record):
    """Directed child -> parent arc of the commit DAG."""

    commit_hash: str
    parent_commit_hash: str

    schema: ClassVar[pa.Schema] = pa.schema([
        ("commit_hash", pa.string()),
        ("parent_commit_hash", pa.string()),
    ])


@dataclass(frozen=True)
class FileContentVertex(Record):
    commit_hash: str
    object_hash: str
    file_name: str
    file_size: int

    schema: ClassVar[pa.Schema] = pa.schema([
        ("commit_hash", pa.string()),
        ("object_hash", pa.string()),
        ("file_name", pa.string()),
        ("file_size", pa.int64()),
    ])


@dataclass(frozen=True)
class StructureSummary(Record):
    repository_name: str
    commit_count: int
    total_file_count: int
    max_file_count: int
    latest_file_count: int

    schema: ClassVar[pa.Schema] = pa.schema([
        ("repository_name", pa.string()),
        ("commit_count", pa.int64()),
        ("total_file_count", pa.int64()),
        ("max_file_count", pa.int64()),
        ("latest_file_count", pa.int64()),
    ])


@dataclass(frozen=True)
class Meta:
    """Catalog entry describing one dataset an extractor produces."""

    name: str
    operational_level: str
    output: str
    schema: Tuple[Tuple[str, str], ...] = ()

    @classmethod
    def for_schema(cls, name: str, operational_level: str, output: str, schema: pa.Schema) -> "Meta":
        columns = tuple((f.name, str(f.type)) for f in schema)
        return cls(name=name, operational_level=operational_level, output=output, schema=columns)
