"""File storage primitives used by the tree orchestrator.

All methods raise OSError on I/O failure; callers decide whether a failure is
fatal (scanning) or a warning (checkpoint bookkeeping).
"""

import os
from pathlib import Path


class Storage:
    """Thin filesystem facade so orchestration code can be exercised against a fake."""

    encoding = "utf-8"

    def exists(self, path: str | Path) -> bool:
        return Path(path).exists()

    def is_directory(self, path: str | Path) -> bool:
        return Path(path).is_dir()

    def read_file(self, path: str | Path) -> str:
        with open(path, encoding=self.encoding) as f:
            return f.read()

    def write_file(self, path: str | Path, content: str) -> None:
        """Write atomically: temp file in the same directory, then replace."""
        target = Path(path)
        tmp = target.with_name(f".{target.name}.tmp")
        with open(tmp, "w", encoding=self.encoding) as f:
            f.write(content)
        os.replace(tmp, target)

    def ensure_directory(self, path: str | Path) -> None:
        Path(path).mkdir(parents=True, exist_ok=True)

    def delete_file(self, path: str | Path) -> None:
        Path(path).unlink()

    def list_directory(self, path: str | Path) -> list[str]:
        """Entry names of a directory, sorted for reproducible traversal."""
        return sorted(os.listdir(path))
