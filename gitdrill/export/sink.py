import logging
from pathlib import Path
from typing import Iterable

import pyarrow as pa
import pyarrow.parquet as pq

from gitdrill.errors import FatalExportError
from gitdrill.records.models import Record

logger = logging.getLogger(__name__)


class ParquetSink:
    """Writes each dataset to its own Parquet file below a root directory."""

    def __init__(self, root: Path = Path("."), compression: str = "zstd"):
        self.root = Path(root)
        self.compression = compression

    def write(self, output: str, schema: pa.Schema, records: Iterable[Record]) -> Path:
        path = self.root / output
        rows = [r.to_row() for r in records]
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            table = pa.Table.from_pylist(rows, schema=schema)
            pq.write_table(table, path, compression=self.compression)
        except (OSError, pa.ArrowException) as e:
            raise FatalExportError(f"Cannot write '{path}': {e}") from e

        logger.info(f"Wrote {len(rows)} rows to {path}")
        return path
