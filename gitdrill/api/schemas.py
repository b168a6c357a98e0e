from typing import List, Optional
from pydantic import BaseModel, Field

from gitdrill.config import DEFAULT_HASH_LENGTH

class MetaResponse(BaseModel):
    name: str
    operational_level: str
    output: str
    columns: List[List[str]]

class ExtractorKindResponse(BaseModel):
    kind: str
    name: str
    capabilities: List[str]

class RunRequest(BaseModel):
    repository_url: str
    is_local: bool = False
    extractors: Optional[List[str]] = None  # None runs all kinds
    hash_length: int = Field(default=DEFAULT_HASH_LENGTH, ge=0, le=40)
    copy_content: bool = False

class ExtractorStatsResponse(BaseModel):
    name: str
    commits_visited: int
    files_processed: int
    skipped_commits: List[str]
    outputs: List[str]

class RunResponse(BaseModel):
    repository_name: str
    commits_walked: int
    files_processed: int
    extractors: List[ExtractorStatsResponse]
    catalog: List[MetaResponse]
