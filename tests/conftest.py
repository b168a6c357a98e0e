import os
import subprocess
from pathlib import Path
from typing import Dict, List, Optional

import pytest

from gitdrill.errors import RecoverableExtractionError
from gitdrill.repository.models import Commit, File, Signature

BASE_TIMESTAMP = 1700000000


def run_git(repo_dir: Path, *args: str, timestamp: Optional[int] = None) -> str:
    env = dict(os.environ)
    env.update({
        "HOME": str(repo_dir.parent),
        "GIT_CONFIG_NOSYSTEM": "1",
        "GIT_AUTHOR_NAME": "Alice",
        "GIT_AUTHOR_EMAIL": "alice@example.com",
        "GIT_COMMITTER_NAME": "Bob",
        "GIT_COMMITTER_EMAIL": "bob@example.com",
    })
    if timestamp is not None:
        env["GIT_AUTHOR_DATE"] = f"{timestamp} +0000"
        env["GIT_COMMITTER_DATE"] = f"{timestamp} +0000"
    result = subprocess.run(["git", *args], cwd=repo_dir, capture_output=True, text=True, env=env)
    if result.returncode != 0:
        raise RuntimeError(f"Failed to run git command: {args}\n{result.stderr}")
    return result.stdout.strip()


def init_repo(repo_dir: Path) -> Path:
    repo_dir.mkdir(parents=True)
    run_git(repo_dir, "init", ".")
    run_git(repo_dir, "symbolic-ref", "HEAD", "refs/heads/main")
    run_git(repo_dir, "config", "commit.gpgsign", "false")
    return repo_dir


def commit_files(repo_dir: Path, files: Dict[str, str], message: str, timestamp: int) -> str:
    for name, content in files.items():
        path = repo_dir / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
    run_git(repo_dir, "add", ".")
    run_git(repo_dir, "commit", "-m", message, timestamp=timestamp)
    return run_git(repo_dir, "rev-parse", "HEAD")


@pytest.fixture
def linear_repo(tmp_path):
    """Creates a repository with two commits on main.

    Creates:
        C1: a.txt (10 bytes)
        C2: adds b.txt (5 bytes), parent C1

    Returns:
        tuple: (repository path, [C1 hash, C2 hash])
    """
    repo_dir = init_repo(tmp_path / "linear")
    c1 = commit_files(repo_dir, {"a.txt": "0123456789"}, "Initial", BASE_TIMESTAMP)
    c2 = commit_files(repo_dir, {"b.txt": "abcde"}, "Add b", BASE_TIMESTAMP + 60)
    return repo_dir, [c1, c2]


@pytest.fixture
def merge_repo(tmp_path):
    """Creates a repository whose HEAD is a merge of two branches.

        C1 <- P1 (feature)
        C1 <- P2 (main)
        P1, P2 <- M (merge on main)

    Returns:
        tuple: (repository path, dict of name -> hash)
    """
    repo_dir = init_repo(tmp_path / "merged")
    c1 = commit_files(repo_dir, {"README.md": "hello\n"}, "Initial", BASE_TIMESTAMP)
    run_git(repo_dir, "checkout", "-b", "feature")
    p1 = commit_files(repo_dir, {"feature.txt": "feature\n"}, "Feature", BASE_TIMESTAMP + 60)
    run_git(repo_dir, "checkout", "main")
    p2 = commit_files(repo_dir, {"fix.txt": "fix\n"}, "Main fix", BASE_TIMESTAMP + 120)
    run_git(repo_dir, "merge", "--no-ff", "feature", "-m", "Merge feature", timestamp=BASE_TIMESTAMP + 180)
    m = run_git(repo_dir, "rev-parse", "HEAD")
    return repo_dir, {"C1": c1, "P1": p1, "P2": p2, "M": m}


# --- In-memory collaborators ---

def fake_oid(label: str) -> str:
    """Deterministic 40 hex character id for a label."""
    return label.encode().hex().ljust(40, "0")[:40]


def make_file(name: str, content: bytes = b"") -> File:
    return File(name=name, hash=fake_oid("blob:" + name + content.hex()), size=len(content),
                reader=lambda: content)


def _files_then_failure(oid: str, files: List[File]):
    yield from files
    raise RecoverableExtractionError(oid, "tree enumeration failed: object missing")


def make_commit(label: str, parents: List[str], files: Optional[List[File]] = None,
                broken_tree: bool = False, fail_after: Optional[int] = None,
                when: int = BASE_TIMESTAMP) -> Commit:
    """Builds an in-memory commit.

    broken_tree fails as soon as files() is called; fail_after yields that
    many files first and then fails.
    """
    oid = fake_oid(label)

    def load_files():
        if broken_tree:
            raise RecoverableExtractionError(oid, "tree enumeration failed: object missing")
        if fail_after is not None:
            return _files_then_failure(oid, list(files or [])[:fail_after])
        return iter(list(files or []))

    return Commit(
        hash=oid,
        author=Signature(name="Alice", email="alice@example.com", when=when),
        committer=Signature(name="Bob", email="bob@example.com", when=when),
        message=f"{label} message",
        parent_hashes=[fake_oid(p) for p in parents],
        file_loader=load_files,
    )


class FakeHandle:
    def __init__(self, commits: List[Commit]):
        self.commits = commits
        self.closed = False
        self.log_calls = 0

    def head(self) -> str:
        return self.commits[0].hash

    def log(self, start: str, all_refs: bool = True):
        self.log_calls += 1
        return iter(list(self.commits))

    def close(self):
        self.closed = True


class FakeProvider:
    def __init__(self, commits: List[Commit]):
        self.handle = FakeHandle(commits)
        self.opened_with = None

    def open(self, config):
        self.opened_with = config
        return self.handle


class MemorySink:
    """Keeps written records keyed by output instead of persisting them."""

    def __init__(self):
        self.outputs = {}

    def write(self, output, schema, records):
        self.outputs[output] = (schema, list(records))
        return Path(output)

    def rows(self, output):
        return self.outputs[output][1]


@pytest.fixture
def memory_sink():
    return MemorySink()
