"""Command line entry point.

Commands:
- drill: clone a repository and write its datasets as Parquet files
- catalog: list the datasets the extractors produce
"""

import logging
from pathlib import Path

import click

from gitdrill.config import DEFAULT_HASH_LENGTH, RepositoryConfig
from gitdrill.engine import DrillingEngine
from gitdrill.errors import DrillError
from gitdrill.export.content import DirectoryContentStore
from gitdrill.extractors.registry import EXTRACTOR_KINDS, build_extractors

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


@click.group()
def cli():
    """Mine git history into columnar datasets."""
    pass


@cli.command("drill")
@click.argument("repository_url")
@click.option("--output", "output_dir", default=".", type=click.Path(file_okay=False), help="Output directory")
@click.option("--in-memory/--on-disk", default=False, help="Clone into a RAM-backed temp directory")
@click.option("--print-logs", is_flag=True, help="Verbose logging including clone progress")
@click.option("--hash-length", default=DEFAULT_HASH_LENGTH, type=click.IntRange(0, 40),
              help="Length of shortened hashes (0 keeps full hashes)")
@click.option("--extractor", "kinds", multiple=True, type=click.Choice(sorted(EXTRACTOR_KINDS)),
              help="Extractor to run; repeatable (default: all)")
@click.option("--no-content", is_flag=True, help="Do not copy file contents to the content store")
def drill(repository_url: str, output_dir: str, in_memory: bool, print_logs: bool, hash_length: int,
          kinds, no_content: bool):
    """Extract the commit graph, file inventory and structure summary of REPOSITORY_URL.

    Examples:
        gitdrill drill https://github.com/org/repo.git --output out

        gitdrill drill https://github.com/org/repo.git --extractor commit-graph --hash-length 0
    """
    logging.basicConfig(level=logging.DEBUG if print_logs else logging.INFO, format=LOG_FORMAT)

    config = RepositoryConfig(
        repository_url=repository_url,
        use_in_memory_temp_repository=in_memory,
        print_logs=print_logs,
        output_dir=output_dir,
        hash_length=hash_length,
    )
    content_store = None if no_content else DirectoryContentStore(Path(output_dir) / "data" / "content")

    try:
        with DrillingEngine(config) as engine:
            engine.init()
            for extractor in build_extractors(list(kinds), content_store):
                engine.append_extractor(extractor)
            report = engine.analyze(lambda state: click.echo(state))
    except DrillError as e:
        click.echo(f"✗ Error: {e}", err=True)
        raise click.Abort()

    click.echo(f"\n✓ Walked {report.commits_walked} commits of '{report.repository_name}'")
    for stats in report.extractors:
        skipped = f", skipped {len(stats.skipped_commits)}" if stats.skipped_commits else ""
        click.echo(f"  {stats.name}: {stats.commits_visited} commits, {stats.files_processed} files{skipped}")
    for path in report.outputs:
        click.echo(f"  wrote {path}")


@cli.command("catalog")
def catalog():
    """List the datasets produced by each extractor."""
    for extractor in build_extractors():
        for meta in extractor.get_meta_info():
            columns = ", ".join(f"{name}:{type_}" for name, type_ in meta.schema)
            click.echo(f"{meta.name} [{meta.operational_level}] -> {meta.output}")
            click.echo(f"  {columns}")


if __name__ == "__main__":
    cli()
