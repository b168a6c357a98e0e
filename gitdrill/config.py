import os
from typing import Optional

from pydantic import BaseModel, Field

DEFAULT_HASH_LENGTH = 12


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def repository_name_from_url(url: str) -> str:
    """Derives a repository name from its URL, e.g. '.../org/repo.git' -> 'repo'."""
    name = url.rstrip("/\\").replace("\\", "/").split("/")[-1]
    # scp-like URLs: git@host:repo.git
    name = name.split(":")[-1]
    if name.endswith(".git"):
        name = name[:-4]
    # Names are used as directory names below an output root
    if name in ("", ".", ".."):
        return "repository"
    return name


class RepositoryConfig(BaseModel):
    repository_url: str
    is_local: bool = False
    use_in_memory_temp_repository: bool = False
    print_logs: bool = False
    output_dir: str = "."
    # 0 keeps full hashes
    hash_length: int = Field(default=DEFAULT_HASH_LENGTH, ge=0, le=40)

    @property
    def repository_name(self) -> str:
        return repository_name_from_url(self.repository_url)

    @classmethod
    def from_env(cls, repository_url: Optional[str] = None) -> "RepositoryConfig":
        """Builds a config from GITDRILL_* environment variables."""
        url = repository_url or os.getenv("GITDRILL_REPO_URL")
        if not url:
            raise ValueError("No repository URL given and GITDRILL_REPO_URL is not set")
        return cls(
            repository_url=url,
            is_local=_env_flag("GITDRILL_LOCAL"),
            use_in_memory_temp_repository=_env_flag("GITDRILL_IN_MEMORY"),
            print_logs=_env_flag("GITDRILL_PRINT_LOGS"),
            output_dir=os.getenv("GITDRILL_OUTPUT_DIR", "."),
            hash_length=int(os.getenv("GITDRILL_HASH_LENGTH", str(DEFAULT_HASH_LENGTH))),
        )
