from dataclasses import dataclass, field
from typing import Callable, Iterator, List


@dataclass(frozen=True)
class Signature:
    name: str
    email: str
    when: int  # unix seconds


@dataclass
class File:
    name: str
    hash: str
    size: int
    reader: Callable[[], bytes] = field(repr=False, compare=False)

    def read(self) -> bytes:
        return self.reader()


@dataclass
class Commit:
    hash: str
    author: Signature
    committer: Signature
    message: str
    parent_hashes: List[str]
    # Called on every files() so each consumer gets a fresh enumeration
    file_loader: Callable[[], Iterator[File]] = field(repr=False, compare=False)

    def files(self) -> Iterator[File]:
        """Lazily enumerates every file of the commit's full tree snapshot."""
        return self.file_loader()
