"""Content transforms applied by the token optimizer.

All transforms are lossy and pure: they take text and return new text.
Summaries keep the shape of a file (imports, declarations, top-level keys)
rather than its meaning.
"""

import json
import re
import tomllib
from pathlib import PurePosixPath
from typing import Any, Dict, List

import yaml

from ..models import ContentKind
from ..scanner.classifier import content_kind_for


MAX_IMPORTS = 10
MAX_PER_GROUP = 5
MAX_TOP_LEVEL_KEYS = 20
MAX_LINES = 50

JS_EXTENSIONS = {".ts", ".tsx", ".js", ".jsx", ".mjs", ".cjs"}

# "//" preceded by ":" is a URL scheme, not a comment
_LINE_COMMENT = re.compile(r"(?<!:)//.*$", re.MULTILINE)
_BLOCK_COMMENT = re.compile(r"/\*[\s\S]*?\*/")


def remove_empty_lines(content: str) -> str:
    """Drop whitespace-only lines, keeping a trailing newline if present."""
    kept = [line for line in content.splitlines() if line.strip()]
    result = "\n".join(kept)
    if kept and content.endswith("\n"):
        result += "\n"
    return result


def remove_comments(content: str, path: str) -> str:
    """Strip ``//`` and ``/* */`` comments from code and JSON files.

    Other content kinds are returned unchanged.
    """
    kind = content_kind_for(path)
    is_json = PurePosixPath(path.lower()).suffix == ".json"
    if kind != ContentKind.CODE and not is_json:
        return content
    content = _BLOCK_COMMENT.sub("", content)
    return _LINE_COMMENT.sub("", content)


def summarize(content: str, path: str) -> str:
    """Summarize content according to its content kind."""
    kind = content_kind_for(path)
    suffix = PurePosixPath(path.lower()).suffix
    if kind == ContentKind.CODE and suffix in JS_EXTENSIONS:
        return summarize_code(content, path)
    if kind == ContentKind.STRUCTURED_DATA:
        return summarize_structured(content, path)
    return summarize_lines(content)


def summarize_code(content: str, path: str) -> str:
    """Keep imports, type declarations, function signatures and exports."""
    imports: List[str] = []
    types: List[str] = []
    functions: List[str] = []
    exports: List[str] = []

    for line in content.splitlines():
        stripped = line.strip()
        if stripped.startswith("import "):
            imports.append(line)
        elif stripped.startswith("export "):
            exports.append(line)
        elif stripped.startswith(("interface ", "type ")):
            types.append(line)
        elif stripped.startswith(("function ", "async function ")) or "=>" in stripped:
            functions.append(line)

    if not (imports or types or functions or exports):
        return summarize_lines(content)

    sections = [f"// File: {path} (summarized)"]
    for title, lines, limit in (
        ("IMPORTS", imports, MAX_IMPORTS),
        ("TYPES", types, MAX_PER_GROUP),
        ("FUNCTIONS", functions, MAX_PER_GROUP),
        ("EXPORTS", exports, MAX_PER_GROUP),
    ):
        if lines:
            sections.append(f"// {title}\n" + "\n".join(lines[:limit]))
    return "\n\n".join(sections) + "\n"


def summarize_structured(content: str, path: str) -> str:
    """Keep the first top-level keys of a JSON, YAML or TOML document.

    Documents that fail to parse, are not mappings or have few keys are
    returned unchanged.
    """
    suffix = PurePosixPath(path.lower()).suffix
    try:
        if suffix == ".json":
            data = json.loads(content)
        elif suffix in (".yaml", ".yml"):
            data = yaml.safe_load(content)
        elif suffix == ".toml":
            data = tomllib.loads(content)
        else:
            return content
    except (ValueError, yaml.YAMLError):
        return content

    if not isinstance(data, dict) or len(data) <= MAX_TOP_LEVEL_KEYS:
        return content

    keys = list(data)
    summary: Dict[str, Any] = {}
    for key in keys[:MAX_TOP_LEVEL_KEYS]:
        summary[str(key)] = _describe_value(data[key])
    summary["..."] = f"({len(keys) - MAX_TOP_LEVEL_KEYS} more properties)"

    if suffix == ".json":
        return json.dumps(summary, indent=2, default=str)
    if suffix == ".toml":
        return "\n".join(
            f"{json.dumps(key)} = {json.dumps(value, default=str)}" for key, value in summary.items()
        ) + "\n"
    return yaml.safe_dump(summary, sort_keys=False, default_flow_style=False)


def summarize_lines(content: str) -> str:
    """Keep the first lines of a file plus a remainder count."""
    lines = content.split("\n")
    if len(lines) <= MAX_LINES:
        return content
    return "\n".join(lines[:MAX_LINES]) + f"\n\n// ... ({len(lines) - MAX_LINES} more lines)"


def _describe_value(value: Any) -> Any:
    if isinstance(value, dict):
        return f"{{...}} ({len(value)} properties)"
    if isinstance(value, list):
        return f"[...] ({len(value)} items)"
    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    return str(value)
