"""
Core logic for filetree_export package.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Sequence

import pathspec

# Exceptions
class FileTreeError(Exception): ...
class DirectoryReadError(FileTreeError): ...
class IgnoreFileError(FileTreeError): ...
class PatternError(FileTreeError): ...
class OutputError(FileTreeError): ...
class InvalidOutputNameError(OutputError): ...

# Defaults & helpers
IGNORE_FILE_NAME = ".filetreeignore"
DEFAULT_OUTPUT_NAME = "file-structure.txt"
INDENT = "  "

_OUTPUT_NAME_RE = re.compile(r"^[a-zA-Z0-9._-]+$")

DEFAULT_IGNORE_CONTENT = """# FileTree Exporter ignore patterns
# Add patterns for files and folders to ignore during export

# Dependencies
node_modules/
.npm/
.yarn/
.pnp/
.pnp.js

# Build outputs
dist/
build/
out/
*.tsbuildinfo

# Version control
.git/
.svn/
.hg/

# IDE and editor files
.vscode/
.idea/
*.swp
*.swo
*~

# OS generated files
.DS_Store
.DS_Store?
._*
.Spotlight-V100
.Trashes
ehthumbs.db
Thumbs.db

# Logs
*.log
logs/

# Runtime data
pids/
*.pid
*.seed
*.pid.lock

# Coverage directory used by tools like istanbul
coverage/
.nyc_output/

# Environment variables
.env
.env.local
.env.development.local
.env.test.local
.env.production.local

# Temporary folders
tmp/
temp/
"""


# Data model
@dataclass(frozen=True)
class TreeEntry:
    name: str
    is_dir: bool


@dataclass(frozen=True)
class TreeLine:
    """One rendered row of the listing: an entry name or an error note."""

    depth: int
    text: str

    def render(self) -> str:
        return f"{INDENT * self.depth}{self.text}"


@dataclass(frozen=True)
class WalkEvent:
    kind: str
    path: str
    message: str = ""


Observer = Callable[[WalkEvent], None]
Lister = Callable[[Path], List[TreeEntry]]


def _notify(observer: Optional[Observer], kind: str, path: object, message: str = "") -> None:
    if observer is not None:
        observer(WalkEvent(kind, str(path), message))


def _error_message(exc: BaseException) -> str:
    if isinstance(exc, OSError) and exc.strerror:
        return exc.strerror
    return str(exc) or "Unknown error"


# Ignore-file utilities
def ensure_ignore_file(
    root: Path,
    name: str = IGNORE_FILE_NAME,
    observer: Optional[Observer] = None,
) -> Path:
    """Create ``root/name`` from :data:`DEFAULT_IGNORE_CONTENT` unless it exists."""
    ignore_path = root / name
    if ignore_path.exists():
        _notify(observer, "ignore_file_found", ignore_path)
        return ignore_path
    try:
        ignore_path.write_text(DEFAULT_IGNORE_CONTENT, encoding="utf-8")
    except OSError as e:
        raise IgnoreFileError(f"Failed to create {name}: {_error_message(e)}")
    _notify(observer, "ignore_file_created", ignore_path)
    return ignore_path


def parse_ignore_patterns(content: str) -> List[str]:
    lines = re.split(r"\r?\n", content)
    return [ln.strip() for ln in lines if ln.strip() and not ln.strip().startswith("#")]


def load_ignore_patterns(
    root: Path,
    name: str = IGNORE_FILE_NAME,
    observer: Optional[Observer] = None,
) -> List[str]:
    """Read the ignore file under *root*; a missing or unreadable file yields ``[]``."""
    ignore_path = root / name
    try:
        content = ignore_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        _notify(observer, "patterns_missing", ignore_path, _error_message(e))
        return []
    patterns = parse_ignore_patterns(content)
    _notify(observer, "patterns_loaded", ignore_path, f"{len(patterns)} patterns")
    return patterns


def load_gitignore(root: Path, observer: Optional[Observer] = None) -> "pathspec.PathSpec":
    """Compile ``root/.gitignore``; a missing or unreadable file matches nothing."""
    gitignore_path = root / ".gitignore"
    if not gitignore_path.exists():
        return pathspec.PathSpec.from_lines("gitwildmatch", [])
    try:
        with gitignore_path.open("r", encoding="utf-8") as fh:
            lines = fh.readlines()
    except (OSError, UnicodeDecodeError) as e:
        _notify(observer, "patterns_missing", gitignore_path, _error_message(e))
        return pathspec.PathSpec.from_lines("gitwildmatch", [])
    return pathspec.PathSpec.from_lines("gitwildmatch", lines)


# Pattern matching
def _matches(relative_path: str, pattern: str) -> bool:
    if pattern.endswith("/"):
        # the stripped check also catches siblings sharing the prefix
        return relative_path.startswith(pattern) or relative_path.startswith(pattern[:-1])
    if "*" in pattern:
        # only "*" is translated; other regex metacharacters stay live
        try:
            regex = re.compile(pattern.replace("*", ".*"))
        except re.error as e:
            raise PatternError(f"Invalid ignore pattern '{pattern}': {e}")
        return regex.search(relative_path) is not None
    return relative_path == pattern or relative_path.startswith(pattern + "/")


def is_ignored(relative_path: str, patterns: Iterable[str]) -> bool:
    """Return True when any of *patterns* matches *relative_path*.

    *relative_path* is relative to the walked root and uses ``/``
    separators. Patterns ending in ``/`` are directory prefixes, patterns
    containing ``*`` are unanchored wildcard searches, anything else
    matches the exact path or a path below it.
    """
    return any(_matches(relative_path, pattern) for pattern in patterns)


# Directory walking
def scan_directory(directory: Path) -> List[TreeEntry]:
    """List *directory* in the order the filesystem returns it.

    Symlinks are reported as files so the walk never follows them.
    """
    with os.scandir(directory) as it:
        return [TreeEntry(e.name, e.is_dir(follow_symlinks=False)) for e in it]


def _relative_posix(path: Path, root: Path) -> str:
    return os.path.relpath(path, root).replace("\\", "/")


def walk(
    directory: Path,
    patterns: Sequence[str],
    root: Path,
    depth: int = 0,
    lister: Lister = scan_directory,
    observer: Optional[Observer] = None,
    extra_spec: Optional["pathspec.PathSpec"] = None,
) -> List[TreeLine]:
    """
    Return the pre-order listing of *directory* as :class:`TreeLine` rows.

    • Entries come in *lister* order; nothing is sorted.
    • Ignored entries are dropped together with everything beneath them.
    • A subdirectory that cannot be listed becomes a single
      ``[Error reading directory: ...]`` row one level deeper and the
      walk carries on with its siblings.
    • If *directory* itself cannot be listed, :class:`DirectoryReadError`
      is raised.
    """
    directory = Path(directory)
    try:
        entries = lister(directory)
    except OSError as e:
        raise DirectoryReadError(
            f"Failed to read directory {directory}: {_error_message(e)}"
        ) from e

    lines: List[TreeLine] = []
    for entry in entries:
        full_path = directory / entry.name
        rel = _relative_posix(full_path, root)

        if is_ignored(rel, patterns):
            _notify(observer, "ignored", rel)
            continue
        if extra_spec is not None and extra_spec.match_file(rel + "/" if entry.is_dir else rel):
            _notify(observer, "ignored", rel, "gitignore")
            continue

        lines.append(TreeLine(depth, entry.name))

        if entry.is_dir:
            try:
                lines.extend(
                    walk(full_path, patterns, root, depth + 1, lister, observer, extra_spec)
                )
            except DirectoryReadError as e:
                _notify(observer, "read_error", full_path, str(e))
                lines.append(TreeLine(depth + 1, f"[Error reading directory: {e}]"))
    return lines


def render_lines(lines: Iterable[TreeLine]) -> str:
    return "\n".join(line.render() for line in lines)


# Multi-root export
@dataclass
class RootResult:
    root: Path
    lines: List[TreeLine] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def name(self) -> str:
        return self.root.name or str(self.root)

    def render(self, banner: bool) -> str:
        body = f"[Error: {self.error}]" if self.error is not None else render_lines(self.lines)
        if banner:
            return f"\n=== Root: {self.name} ===\n{body}"
        return body


@dataclass
class ExportResult:
    roots: List[RootResult]
    text: str

    @property
    def failed(self) -> List[RootResult]:
        return [r for r in self.roots if r.error is not None]


def export_root(
    root: Path,
    ignore_file: str = IGNORE_FILE_NAME,
    create_ignore: bool = True,
    use_gitignore: bool = False,
    lister: Lister = scan_directory,
    observer: Optional[Observer] = None,
) -> List[TreeLine]:
    """Bootstrap/load the ignore file for *root* and walk it."""
    if create_ignore:
        ensure_ignore_file(root, ignore_file, observer)
    patterns = load_ignore_patterns(root, ignore_file, observer)
    extra_spec = load_gitignore(root, observer) if use_gitignore else None
    return walk(root, patterns, root, lister=lister, observer=observer, extra_spec=extra_spec)


def export_roots(
    roots: Sequence[Path],
    ignore_file: str = IGNORE_FILE_NAME,
    create_ignore: bool = True,
    use_gitignore: bool = False,
    lister: Lister = scan_directory,
    observer: Optional[Observer] = None,
) -> ExportResult:
    """Export every root in order; a failing root is annotated, not fatal."""
    results: List[RootResult] = []
    for root in roots:
        root = Path(root)
        result = RootResult(root)
        _notify(observer, "root_started", root)
        try:
            result.lines = export_root(
                root,
                ignore_file=ignore_file,
                create_ignore=create_ignore,
                use_gitignore=use_gitignore,
                lister=lister,
                observer=observer,
            )
        except FileTreeError as e:
            result.error = str(e)
            _notify(observer, "root_failed", root, result.error)
        else:
            _notify(observer, "root_done", root, f"{len(result.lines)} lines")
        results.append(result)

    banner = len(results) > 1
    text = "\n".join(r.render(banner) for r in results)
    return ExportResult(results, text)


# Output
def validate_output_name(name: str) -> str:
    if not name or not name.strip():
        raise InvalidOutputNameError("File name cannot be empty")
    if not _OUTPUT_NAME_RE.match(name):
        raise InvalidOutputNameError(
            "File name contains invalid characters. "
            "Use only letters, numbers, dots, hyphens, and underscores."
        )
    return name


def write_output(text: str, directory: Path, name: str = DEFAULT_OUTPUT_NAME) -> Path:
    """Write *text* to ``directory/name`` and return the resolved path."""
    validate_output_name(name)
    try:
        out_path = (directory / name).resolve()
    except (OSError, RuntimeError) as e:
        raise OutputError(f"Could not resolve output path '{directory / name}': {e}")
    try:
        # undecodable file names are written back as their original bytes
        with out_path.open("w", encoding="utf-8", errors="surrogateescape", newline="\n") as out_fh:
            out_fh.write(text)
    except (OSError, UnicodeError) as e:
        raise OutputError(f"Failed to write output file: {_error_message(e)}")
    return out_path

