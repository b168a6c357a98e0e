import shutil
import subprocess
from pathlib import Path

import pyarrow.parquet as pq

from gitdrill.config import RepositoryConfig
from gitdrill.engine import DrillingEngine
from gitdrill.extractors.registry import build_extractors


def git(repo_dir: Path, *args: str):
    subprocess.run(["git", *args], cwd=repo_dir, check=True, capture_output=True)


def setup_demo_repo(repo_dir: Path):
    if repo_dir.exists():
        shutil.rmtree(repo_dir)
    repo_dir.mkdir()
    git(repo_dir, "init", ".")
    git(repo_dir, "symbolic-ref", "HEAD", "refs/heads/main")
    git(repo_dir, "config", "user.name", "User")
    git(repo_dir, "config", "user.email", "user@example.com")

    (repo_dir / "hello.txt").write_text("Hello World")
    git(repo_dir, "add", ".")
    git(repo_dir, "commit", "-m", "Initial commit")

    git(repo_dir, "checkout", "-b", "feature")
    (repo_dir / "feature.txt").write_text("Feature")
    git(repo_dir, "add", ".")
    git(repo_dir, "commit", "-m", "Add feature")

    git(repo_dir, "checkout", "main")
    (repo_dir / "hello.txt").write_text("Hello Git Graph")
    git(repo_dir, "commit", "-am", "Update text")
    git(repo_dir, "merge", "--no-ff", "feature", "-m", "Merge feature")


def main():
    repo_dir = Path("demo_repo")
    out_dir = Path("demo_out")
    print(f"Creating demo repo in {repo_dir}...")
    setup_demo_repo(repo_dir)

    config = RepositoryConfig(repository_url=str(repo_dir.resolve()), output_dir=str(out_dir))
    with DrillingEngine(config) as engine:
        engine.init()
        for extractor in build_extractors():
            engine.append_extractor(extractor)
        report = engine.analyze(print)

    print(f"\nWalked {report.commits_walked} commits.")
    for path in report.outputs:
        print(f"\n--- {path} ---")
        for row in pq.read_table(path).to_pylist():
            print(row)


if __name__ == "__main__":
    main()
