"""Source code helper utilities."""

from __future__ import annotations

from pathlib import Path
from typing import Generator, Iterable, Optional

from vulnscan.language import EXTENSION_MAP

SKIP_DIRS = frozenset({".git", ".hg", ".svn", "node_modules", "__pycache__", ".venv", "venv"})


def iter_code_files(
    root_paths: Iterable[str],
    extensions: Optional[Iterable[str]] = None,
) -> Generator[Path, None, None]:
    """Yield code files beneath the provided paths in a stable order.

    Directories are walked recursively and filtered by ``extensions`` (every
    extension with a known language by default). A path naming a file is
    yielded as-is, whatever its extension.
    """

    allowed = {ext.lower() for ext in (extensions if extensions is not None else EXTENSION_MAP)}
    for root in root_paths:
        root_path = Path(root)
        if root_path.is_file():
            yield root_path
            continue
        for path in sorted(root_path.rglob("*")):
            if SKIP_DIRS.intersection(path.relative_to(root_path).parts):
                continue
            if path.suffix.lower() in allowed and path.is_file():
                yield path
