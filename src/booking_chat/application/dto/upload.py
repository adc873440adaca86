from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True, slots=True)
class FileUpload:
    name: str
    content: bytes
    content_type: str = "application/octet-stream"

    @property
    def size(self) -> int:
        return len(self.content)

    @classmethod
    def from_path(cls, path: str | Path, content_type: str = "application/octet-stream") -> FileUpload:
        p = Path(path)
        return cls(name=p.name, content=p.read_bytes(), content_type=content_type)
