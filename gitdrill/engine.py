import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

from gitdrill.config import RepositoryConfig
from gitdrill.errors import AnalysisCancelled, RecoverableExtractionError
from gitdrill.export.sink import ParquetSink
from gitdrill.extractors.base import Capability, Extractor
from gitdrill.records.hashing import shorten_hash
from gitdrill.records.models import CommitVertex, FileContentVertex, Meta
from gitdrill.repository.models import Commit
from gitdrill.repository.provider import GitRepositoryProvider

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str], None]
StagedAppend = Callable[[], None]


def log_progress(state: str):
    logger.info(state)


@dataclass
class ExtractorStats:
    name: str
    commits_visited: int = 0
    files_processed: int = 0
    skipped_commits: List[str] = field(default_factory=list)
    outputs: List[Path] = field(default_factory=list)


@dataclass
class AnalysisReport:
    repository_name: str
    commits_walked: int = 0
    extractors: List[ExtractorStats] = field(default_factory=list)

    @property
    def files_processed(self) -> int:
        return sum(s.files_processed for s in self.extractors)

    @property
    def outputs(self) -> List[Path]:
        return [p for s in self.extractors for p in s.outputs]


class DrillingEngine:
    """Walks a repository's history once and feeds every commit to all extractors.

    Extractors are visited in registration order for each commit. Each one
    keeps its own buffers; nothing is shared between them. Exports run after
    the walk has finished.
    """

    def __init__(self, config: RepositoryConfig, provider=None, sink=None):
        self.config = config
        self.provider = provider or GitRepositoryProvider()
        self.sink = sink or ParquetSink(Path(config.output_dir))
        self.repository = None
        self.extractors: List[Extractor] = []
        self._cancel_event: Optional[threading.Event] = None
        self._routines: Dict[Capability, Callable[[Commit, Extractor], Tuple[StagedAppend, int]]] = {
            Capability.COMMIT_GRAPH: self._extract_commit_graph,
            Capability.FILE_INVENTORY: self._extract_file_inventory,
            Capability.STRUCTURE_SUMMARY: self._extract_structure_summary,
        }

    def init(self) -> "DrillingEngine":
        """Acquires the repository handle. Acquisition errors are fatal."""
        self.repository = self.provider.open(self.config)
        return self

    def close(self):
        if self.repository is not None:
            self.repository.close()
            self.repository = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def append_extractor(self, extractor: Extractor) -> "DrillingEngine":
        if any(e is extractor for e in self.extractors):
            raise ValueError(f"Extractor '{extractor.name}' is already registered")
        self.extractors.append(extractor)
        logger.info(f"Registered extractor '{extractor.name}'")
        return self

    def get_meta_infos(self) -> List[Meta]:
        return [meta for e in self.extractors for meta in e.get_meta_info()]

    def analyze(
        self,
        progress_callback: Optional[ProgressCallback] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> AnalysisReport:
        if self.repository is None:
            raise RuntimeError("init() must be called before analyze()")

        progress = progress_callback or log_progress
        progress("Starting analysis...")
        logger.info(f"We have {len(self.extractors)} extractors.")

        repository_name = self.config.repository_name
        report = AnalysisReport(repository_name=repository_name)
        for extractor in self.extractors:
            extractor.reset(repository_name)
            report.extractors.append(ExtractorStats(name=extractor.name))

        self._cancel_event = cancel_event
        try:
            head = self.repository.head()
            files_processed = 0
            for commit in self.repository.log(head, all_refs=True):
                self._check_cancelled()
                report.commits_walked += 1
                for extractor, stats in zip(self.extractors, report.extractors):
                    try:
                        count = self.visit_commit(commit, extractor)
                    except RecoverableExtractionError as e:
                        logger.warning(f"Skipping commit {commit.hash} for '{extractor.name}': {e}")
                        stats.skipped_commits.append(commit.hash)
                        continue
                    stats.commits_visited += 1
                    stats.files_processed += count
                    if count:
                        files_processed += count
                        progress(f"Processed {files_processed} files.")
        finally:
            self._cancel_event = None

        logger.info(f"Walked {report.commits_walked} commits, exporting")
        for i, (extractor, stats) in enumerate(zip(self.extractors, report.extractors)):
            logger.info(f"({i + 1}/{len(self.extractors)}) Exporting '{extractor.name}'")
            stats.outputs = extractor.export(self.sink)
        return report

    def visit_commit(self, commit: Commit, extractor: Extractor) -> int:
        """Runs one extraction routine per capability of the extractor.

        Routines stage their records; the extractor only receives them once
        every routine for the commit has succeeded, so a commit skipped for a
        RecoverableExtractionError leaves no rows behind.

        Returns the number of files processed for the commit.
        """
        staged: List[StagedAppend] = []
        count = 0
        for capability in Capability:
            if capability in extractor.capabilities:
                append, files = self._routines[capability](commit, extractor)
                staged.append(append)
                count += files
        for append in staged:
            append()
        return count

    def _short(self, oid: str) -> str:
        return shorten_hash(oid, self.config.hash_length)

    def _check_cancelled(self):
        if self._cancel_event is not None and self._cancel_event.is_set():
            raise AnalysisCancelled("Analysis was cancelled")

    def _extract_commit_graph(self, commit: Commit, extractor) -> Tuple[StagedAppend, int]:
        commit_hash = self._short(commit.hash)
        vertex = CommitVertex(
            repository_name=self.config.repository_name,
            commit_hash=commit_hash,
            author_name=commit.author.name,
            author_mail=commit.author.email,
            author_timestamp=commit.author.when,
            committer_name=commit.committer.name,
            committer_mail=commit.committer.email,
            committer_timestamp=commit.committer.when,
            commit_message=commit.message,
        )
        parents = [self._short(p) for p in commit.parent_hashes]

        def append():
            extractor.append_commit_vertex(vertex)
            extractor.append_commit_edges(commit_hash, parents)

        return append, 0

    def _extract_file_inventory(self, commit: Commit, extractor) -> Tuple[StagedAppend, int]:
        commit_hash = self._short(commit.hash)
        rows = []
        for file in commit.files():
            self._check_cancelled()
            rows.append(FileContentVertex(
                commit_hash=commit_hash,
                object_hash=self._short(file.hash),
                file_name=file.name,
                file_size=file.size,
            ))
            # Content-addressed copies are kept even if the tree fails later on
            extractor.copy_file(file)
        return lambda: extractor.append_file_content_vertices(rows), len(rows)

    def _extract_structure_summary(self, commit: Commit, extractor) -> Tuple[StagedAppend, int]:
        count = 0
        for _ in commit.files():
            count += 1
        return lambda: extractor.add_file_count(count), 0
