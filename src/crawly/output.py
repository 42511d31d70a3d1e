"""Streaming JSONL output for crawl results."""

import json
from pathlib import Path
from typing import Mapping, TextIO


class StreamingOutputWriter:
    """Writes one JSON object per crawled page."""

    def __init__(
        self,
        output_path: str | Path,
        include_content: bool = True,
    ):
        self.output_path = Path(output_path)
        self.include_content = include_content
        self._file: TextIO | None = None
        self._count = 0

    def __enter__(self) -> "StreamingOutputWriter":
        self.output_path.parent.mkdir(parents=True, exist_ok=True)
        self._file = open(self.output_path, "w", encoding="utf-8")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self._file is not None:
            self._file.close()
            self._file = None

    def write_page(self, url: str, content: str):
        """Write the record for one stored page."""
        record = {"url": url, "content_length": len(content)}
        if self.include_content:
            record["content"] = content
        self._write(record)

    def write_all(self, pages: Mapping[str, str]) -> int:
        """Write every page of a crawl result in its iteration order."""
        for url, content in pages.items():
            self.write_page(url, content)
        return self._count

    def _write(self, record: dict):
        if self._file is None:
            raise RuntimeError("StreamingOutputWriter must be used as context manager")

        self._file.write(json.dumps(record, ensure_ascii=False) + "\n")
        self._file.flush()
        self._count += 1

    @property
    def count(self) -> int:
        """Number of records written."""
        return self._count
