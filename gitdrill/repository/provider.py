import logging
import shutil
import tempfile
from pathlib import Path
from typing import Iterator, Optional

from git import RemoteProgress, Repo
from git.exc import GitError, ODBError

from gitdrill.config import RepositoryConfig
from gitdrill.errors import (
    FatalAcquisitionError,
    FatalWalkError,
    RecoverableExtractionError,
    UnsupportedConfigurationError,
)
from gitdrill.repository.models import Commit, File, Signature

logger = logging.getLogger(__name__)

# RAM-backed filesystem used for in-memory clones
SHM_DIR = Path("/dev/shm")

# Object-store failures GitPython surfaces while reading commits and trees
READ_ERRORS = (GitError, ODBError, ValueError, OSError)


class _LoggingProgress(RemoteProgress):
    def update(self, op_code, cur_count, max_count=None, message=""):
        total = f"/{int(max_count)}" if max_count else ""
        logger.debug(f"clone: {int(cur_count)}{total} {message}".rstrip())


class GitRepositoryHandle:
    """Read-only view on a cloned repository."""

    def __init__(self, repo: Repo, temp_dir: Optional[Path] = None):
        self.repo = repo
        self.temp_dir = temp_dir

    def head(self) -> str:
        try:
            return self.repo.head.commit.hexsha
        except READ_ERRORS as e:
            raise FatalAcquisitionError(f"Cannot resolve HEAD: {e}") from e

    def log(self, start: str, all_refs: bool = True) -> Iterator[Commit]:
        """Yields every commit reachable from start (and from all refs)."""
        try:
            for git_commit in self.repo.iter_commits(rev=start, all=all_refs):
                yield self._to_commit(git_commit)
        except READ_ERRORS as e:
            raise FatalWalkError(f"History walk failed: {e}") from e

    def close(self):
        self.repo.close()
        if self.temp_dir is not None and self.temp_dir.exists():
            logger.info(f"Removing temporary clone at '{self.temp_dir}'")
            shutil.rmtree(self.temp_dir, ignore_errors=True)
        self.temp_dir = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def _to_commit(self, git_commit) -> Commit:
        return Commit(
            hash=git_commit.hexsha,
            author=Signature(
                name=git_commit.author.name or "",
                email=git_commit.author.email or "",
                when=int(git_commit.authored_date),
            ),
            committer=Signature(
                name=git_commit.committer.name or "",
                email=git_commit.committer.email or "",
                when=int(git_commit.committed_date),
            ),
            message=_decode(git_commit.message),
            parent_hashes=[p.hexsha for p in git_commit.parents],
            file_loader=lambda: self._iter_files(git_commit),
        )

    def _iter_files(self, git_commit) -> Iterator[File]:
        try:
            for item in git_commit.tree.traverse():
                # Trees and submodule links are not files
                if item.type != "blob":
                    continue
                yield File(
                    name=item.path,
                    hash=item.hexsha,
                    size=item.size,
                    reader=lambda blob=item: _read_blob(blob, git_commit.hexsha),
                )
        except READ_ERRORS as e:
            raise RecoverableExtractionError(git_commit.hexsha, f"tree enumeration failed: {e}") from e


def _read_blob(blob, commit_hash: str) -> bytes:
    try:
        return blob.data_stream.read()
    except READ_ERRORS as e:
        raise RecoverableExtractionError(commit_hash, f"cannot read {blob.path}: {e}") from e


def _decode(message) -> str:
    if isinstance(message, bytes):
        return message.decode("utf-8", errors="replace")
    return message


class GitRepositoryProvider:
    """Clones repositories into a process-owned temporary directory."""

    def open(self, config: RepositoryConfig) -> GitRepositoryHandle:
        if config.is_local:
            raise UnsupportedConfigurationError("Using local repositories is not yet supported.")

        temp_root = None
        if config.use_in_memory_temp_repository:
            logger.warning(
                "Cloning repository into memory. This can speed up extraction, but also requires a lot "
                "of memory for huge repositories. Consider disabling the in-memory option in case of issues."
            )
            if SHM_DIR.is_dir():
                temp_root = str(SHM_DIR)
            else:
                logger.warning(f"{SHM_DIR} is not available, falling back to the default temp directory")

        try:
            temp_dir = Path(tempfile.mkdtemp(prefix=f"{config.repository_name}-", dir=temp_root))
        except OSError as e:
            raise FatalAcquisitionError(f"Cannot create temporary directory: {e}") from e

        logger.info(f"Cloning repository to '{temp_dir}'. This directory is removed when the handle is closed.")
        progress = _LoggingProgress() if config.print_logs else None
        try:
            repo = Repo.clone_from(config.repository_url, temp_dir, bare=True, progress=progress)
        except READ_ERRORS as e:
            shutil.rmtree(temp_dir, ignore_errors=True)
            raise FatalAcquisitionError(f"Cannot clone '{config.repository_url}': {e}") from e

        return GitRepositoryHandle(repo, temp_dir)
