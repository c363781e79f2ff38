"""Source language tags understood by the rule catalog."""

from __future__ import annotations

from enum import Enum
from pathlib import PurePath
from typing import Dict, Union

EXTENSION_MAP: Dict[str, str] = {
    ".js": "javascript",
    ".jsx": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
    ".ts": "typescript",
    ".tsx": "typescript",
    ".py": "python",
    ".java": "java",
    ".go": "go",
    ".rb": "ruby",
    ".php": "php",
    ".cs": "csharp",
    ".c": "c",
    ".h": "c",
    ".cpp": "cpp",
    ".cc": "cpp",
    ".cxx": "cpp",
    ".hpp": "cpp",
}

ALIASES: Dict[str, str] = {
    "js": "javascript",
    "node": "javascript",
    "ts": "typescript",
    "py": "python",
    "golang": "go",
    "rb": "ruby",
    "c#": "csharp",
    "cs": "csharp",
    "c++": "cpp",
}


class Language(str, Enum):
    """Closed set of languages plus the ``unknown`` fallback."""

    JAVASCRIPT = "javascript"
    TYPESCRIPT = "typescript"
    PYTHON = "python"
    JAVA = "java"
    GO = "go"
    RUBY = "ruby"
    PHP = "php"
    C = "c"
    CPP = "cpp"
    CSHARP = "csharp"
    UNKNOWN = "unknown"

    @classmethod
    def from_tag(cls, tag: Union[str, "Language", None]) -> "Language":
        """Resolve a caller supplied tag; unrecognized tags map to ``UNKNOWN``."""

        if isinstance(tag, Language):
            return tag
        text = str(tag or "").strip().lower()
        text = ALIASES.get(text, text)
        for language in cls:
            if language.value == text:
                return language
        return cls.UNKNOWN

    @classmethod
    def from_path(cls, path: Union[str, PurePath]) -> "Language":
        suffix = PurePath(path).suffix.lower()
        return cls.from_tag(EXTENSION_MAP.get(suffix))
