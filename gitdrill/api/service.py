import logging
from pathlib import Path
from typing import List

from gitdrill.api.schemas import ExtractorKindResponse, ExtractorStatsResponse, MetaResponse, RunRequest, RunResponse
from gitdrill.config import RepositoryConfig, repository_name_from_url
from gitdrill.engine import DrillingEngine
from gitdrill.export.content import DirectoryContentStore
from gitdrill.extractors.registry import EXTRACTOR_KINDS, build_extractors
from gitdrill.records.models import Meta

logger = logging.getLogger(__name__)


def _to_meta_response(meta: Meta) -> MetaResponse:
    return MetaResponse(
        name=meta.name,
        operational_level=meta.operational_level,
        output=meta.output,
        columns=[list(column) for column in meta.schema],
    )


class DrillService:
    def __init__(self, output_dir: Path = Path(".")):
        self.output_dir = output_dir
        # Injected into every engine; None selects the GitPython provider
        self.provider = None

    def list_extractors(self) -> List[ExtractorKindResponse]:
        kinds = []
        for kind, extractor in zip(EXTRACTOR_KINDS, build_extractors()):
            kinds.append(ExtractorKindResponse(
                kind=kind,
                name=extractor.name,
                capabilities=sorted(c.value for c in extractor.capabilities),
            ))
        return kinds

    def get_catalog(self) -> List[MetaResponse]:
        return [_to_meta_response(meta) for e in build_extractors() for meta in e.get_meta_info()]

    def run(self, req: RunRequest) -> RunResponse:
        """Runs one analysis; the datasets land in output_dir/<repository name>."""
        output_dir = self.output_dir / repository_name_from_url(req.repository_url)
        root = self.output_dir.resolve()
        if root != output_dir.resolve().parent:
            raise ValueError(f"Output directory for {req.repository_url} escapes {root}")
        config = RepositoryConfig(repository_url=req.repository_url, is_local=req.is_local,
                                  hash_length=req.hash_length, output_dir=str(output_dir))

        content_store = None
        if req.copy_content:
            content_store = DirectoryContentStore(output_dir / "data" / "content")
        extractors = build_extractors(req.extractors, content_store)

        with DrillingEngine(config, provider=self.provider) as engine:
            engine.init()
            for extractor in extractors:
                engine.append_extractor(extractor)
            report = engine.analyze()
            catalog = [_to_meta_response(meta) for meta in engine.get_meta_infos()]

        logger.info(f"Run for {config.repository_url} walked {report.commits_walked} commits")
        return RunResponse(
            repository_name=report.repository_name,
            commits_walked=report.commits_walked,
            files_processed=report.files_processed,
            extractors=[
                ExtractorStatsResponse(
                    name=s.name,
                    commits_visited=s.commits_visited,
                    files_processed=s.files_processed,
                    skipped_commits=s.skipped_commits,
                    outputs=[str(p) for p in s.outputs],
                )
                for s in report.extractors
            ],
            catalog=catalog,
        )
