from typing import Callable, Dict, List, Optional

from gitdrill.extractors.base import Extractor
from gitdrill.extractors.commit_graph import CommitGraphExtractor
from gitdrill.extractors.file_inventory import FileInventoryExtractor
from gitdrill.extractors.structure_summary import StructureSummaryExtractor

EXTRACTOR_KINDS: Dict[str, Callable[..., Extractor]] = {
    "commit-graph": lambda content_store=None: CommitGraphExtractor(),
    "file-inventory": lambda content_store=None: FileInventoryExtractor(content_store),
    "structure-summary": lambda content_store=None: StructureSummaryExtractor(),
}


def build_extractors(kinds: Optional[List[str]] = None, content_store=None) -> List[Extractor]:
    """Instantiates extractors by kind name; all kinds when none are given."""
    selected = kinds or list(EXTRACTOR_KINDS)
    unknown = [k for k in selected if k not in EXTRACTOR_KINDS]
    if unknown:
        raise ValueError(f"Unknown extractor kind(s): {', '.join(unknown)}")
    return [EXTRACTOR_KINDS[k](content_store=content_store) for k in selected]
