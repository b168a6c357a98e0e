from pathlib import Path

import pyarrow.parquet as pq
import pytest

from conftest import run_git
from gitdrill.config import RepositoryConfig
from gitdrill.engine import DrillingEngine
from gitdrill.errors import FatalAcquisitionError, RecoverableExtractionError, UnsupportedConfigurationError
from gitdrill.export.content import DirectoryContentStore
from gitdrill.extractors.commit_graph import CommitGraphExtractor
from gitdrill.extractors.file_inventory import FileInventoryExtractor
from gitdrill.extractors.structure_summary import StructureSummaryExtractor
from gitdrill.repository.provider import GitRepositoryProvider, _read_blob


def open_handle(repo_dir: Path, **config):
    return GitRepositoryProvider().open(RepositoryConfig(repository_url=str(repo_dir), **config))


def test_open_and_walk(linear_repo):
    repo_dir, (c1, c2) = linear_repo
    with open_handle(repo_dir) as handle:
        assert handle.head() == c2
        commits = list(handle.log(handle.head()))

    assert [c.hash for c in commits] == [c2, c1]
    newest = commits[0]
    assert newest.parent_hashes == [c1]
    assert newest.author.name == "Alice"
    assert newest.author.email == "alice@example.com"
    assert newest.committer.name == "Bob"
    assert newest.author.when == 1700000060
    assert newest.message.strip() == "Add b"
    assert commits[1].parent_hashes == []


def test_files_are_full_snapshots(linear_repo):
    repo_dir, _ = linear_repo
    with open_handle(repo_dir) as handle:
        newest, oldest = list(handle.log(handle.head()))
        newest_files = {f.name: f for f in newest.files()}
        oldest_files = {f.name: f for f in oldest.files()}

        assert set(newest_files) == {"a.txt", "b.txt"}
        assert set(oldest_files) == {"a.txt"}
        assert newest_files["a.txt"].size == 10
        assert newest_files["b.txt"].read() == b"abcde"
        # Unchanged blob keeps its object hash
        assert newest_files["a.txt"].hash == oldest_files["a.txt"].hash


def test_walk_covers_all_refs(merge_repo):
    repo_dir, hashes = merge_repo
    with open_handle(repo_dir) as handle:
        merge = next(iter(handle.log(handle.head())))
        walked = [c.hash for c in handle.log(handle.head())]

    assert merge.hash == hashes["M"]
    assert sorted(merge.parent_hashes) == sorted([hashes["P1"], hashes["P2"]])
    assert sorted(walked) == sorted(hashes.values())
    assert len(walked) == len(set(walked))


def test_close_removes_temp_clone(linear_repo):
    repo_dir, _ = linear_repo
    handle = open_handle(repo_dir)
    temp_dir = handle.temp_dir
    assert temp_dir.exists()
    assert temp_dir.name.startswith("linear-")

    handle.close()
    assert not temp_dir.exists()


def test_in_memory_clone(linear_repo):
    repo_dir, (_, c2) = linear_repo
    with open_handle(repo_dir, use_in_memory_temp_repository=True) as handle:
        assert handle.head() == c2


def test_local_mode_is_unsupported(linear_repo):
    repo_dir, _ = linear_repo
    with pytest.raises(UnsupportedConfigurationError):
        open_handle(repo_dir, is_local=True)


def test_missing_repository_is_fatal(tmp_path):
    with pytest.raises(FatalAcquisitionError):
        open_handle(tmp_path / "does-not-exist")


def test_drill_to_parquet(merge_repo, tmp_path):
    repo_dir, hashes = merge_repo
    out = tmp_path / "out"
    config = RepositoryConfig(repository_url=str(repo_dir), output_dir=str(out))

    with DrillingEngine(config) as engine:
        engine.init()
        engine.append_extractor(CommitGraphExtractor())
        engine.append_extractor(FileInventoryExtractor(DirectoryContentStore(out / "data" / "content")))
        engine.append_extractor(StructureSummaryExtractor())
        report = engine.analyze(lambda state: None)

    vertices = pq.read_table(out / "data" / "commit-vertices.parquet").to_pylist()
    edges = pq.read_table(out / "data" / "commit-edges.parquet").to_pylist()
    files = pq.read_table(out / "data" / "file-content.parquet").to_pylist()
    [summary] = pq.read_table(out / "data" / "structure-summary.parquet").to_pylist()

    short = {name: oid[:12] for name, oid in hashes.items()}
    assert sorted(v["commit_hash"] for v in vertices) == sorted(short.values())
    assert all(v["repository_name"] == "merged" for v in vertices)
    assert sorted((e["commit_hash"], e["parent_commit_hash"]) for e in edges) == sorted([
        (short["M"], short["P1"]),
        (short["M"], short["P2"]),
        (short["P1"], short["C1"]),
        (short["P2"], short["C1"]),
    ])

    # C1: 1 file, P1: 2, P2: 2, M: 3
    assert len(files) == 8
    assert report.files_processed == 8
    assert summary["total_file_count"] == 8
    assert summary["latest_file_count"] == 3
    assert summary["commit_count"] == 4

    # Three distinct blobs, each copied once
    assert len(list((out / "data" / "content").iterdir())) == 3


class OpenedProvider:
    """Hands an already opened handle to the engine."""

    def __init__(self, handle):
        self.handle = handle

    def open(self, config):
        return self.handle


def test_missing_tree_object_skips_commit_for_tree_readers(linear_repo, memory_sink):
    repo_dir, (c1, c2) = linear_repo
    tree_oid = run_git(repo_dir, "rev-parse", f"{c1}^{{tree}}")
    handle = open_handle(repo_dir)
    (handle.temp_dir / "objects" / tree_oid[:2] / tree_oid[2:]).unlink()

    config = RepositoryConfig(repository_url=str(repo_dir))
    with DrillingEngine(config, provider=OpenedProvider(handle), sink=memory_sink) as engine:
        engine.init()
        engine.append_extractor(CommitGraphExtractor())
        engine.append_extractor(FileInventoryExtractor())
        report = engine.analyze(lambda state: None)

    assert [s.skipped_commits for s in report.extractors] == [[], [c1]]
    assert len(memory_sink.rows("data/commit-vertices.parquet")) == 2
    rows = memory_sink.rows("data/file-content.parquet")
    assert sorted((r.commit_hash, r.file_name) for r in rows) == [(c2[:12], "a.txt"), (c2[:12], "b.txt")]


class UnreadableBlob:
    path = "broken.bin"

    @property
    def data_stream(self):
        raise ValueError("SHA could not be resolved, git returned: missing")


def test_unreadable_blob_raises_recoverable_error():
    with pytest.raises(RecoverableExtractionError) as excinfo:
        _read_blob(UnreadableBlob(), "ab" * 20)
    assert excinfo.value.commit_hash == "ab" * 20
    assert "broken.bin" in str(excinfo.value)
