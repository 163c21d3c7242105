#!/usr/bin/env python3
"""
LLM Code Copier - Project Source Packer for LLM Prompts

Collects a project's source files, extracts lightweight project metadata
from the nearest Cargo or Python manifest, and copies the result to the
clipboard as a single tagged document ready to paste into an LLM prompt.

Architecture:
    CLI Args → Configuration → File Collection → Manifest Detection →
    Metadata Extraction → Formatting (tree + files) → Output
"""

from __future__ import annotations

import argparse
import fnmatch
import logging
import os
import re
import sys
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum, auto
from pathlib import Path
from typing import (
    Any,
    Callable,
    Dict,
    FrozenSet,
    Iterable,
    List,
    Optional,
    Sequence,
    TextIO,
    Tuple,
)

import gitignore_parser
import pyperclip

try:
    import tomllib
except ImportError:
    import tomli as tomllib


# =============================================================================
# VERSION MANAGEMENT
# =============================================================================

__version__ = "0.2.0"


def get_version() -> str:
    """Get version from package metadata or fallback to hardcoded."""
    from importlib.metadata import PackageNotFoundError, version

    try:
        return version("llm-cocop")
    except PackageNotFoundError:
        return __version__


# =============================================================================
# CONSTANTS
# =============================================================================

class Defaults:
    """Default configuration values."""
    MAX_SIZE = "100k"


class ExcludedDirs:
    """Directories pruned from every walk."""
    DIRS: FrozenSet[str] = frozenset({
        # Version control
        ".git", ".hg", ".svn", ".github",
        # Build outputs
        "target", "dist", "build", "out",
        # Dependencies
        "node_modules", ".eggs", "*.egg-info",
        # IDE directories
        ".vscode", ".idea", ".ipynb_checkpoints",
        # Python caches and virtual environments
        "__pycache__", ".pytest_cache", ".mypy_cache", ".tox",
        "venv", "env", ".venv", ".env",
    })


class ExcludedExtensions:
    """Binary and asset extensions never read as text."""
    EXTENSIONS: FrozenSet[str] = frozenset({
        # Executables and libraries
        ".exe", ".dll", ".so", ".dylib", ".o", ".obj", ".a", ".lib", ".bin",
        # Images
        ".png", ".jpg", ".jpeg", ".gif", ".svg", ".ico",
        # Fonts
        ".woff", ".woff2", ".ttf", ".eot",
        # Compiled bytecode and archives
        ".pyc", ".pyd", ".pyo", ".class", ".jar",
    })


class ManifestNames:
    """Manifest file names checked at each directory level."""
    CARGO = "Cargo.toml"
    PYPROJECT = "pyproject.toml"
    SETUP_PY = "setup.py"
    REQUIREMENTS = "requirements.txt"


# Tree display glyphs
GLYPH_CHILD = "├──"
GLYPH_LAST = "└──"
TREE_INDENT = 2

UNKNOWN_PROJECT_NOTICE = "Project type could not be determined."


# =============================================================================
# ENUMS AND DATA MODELS
# =============================================================================

class ProjectKind(Enum):
    """Project flavour derived from the detected manifest."""
    RUST = "Rust"
    PYTHON = "Python"
    UNKNOWN = "Unknown"

    @property
    def info_tag(self) -> str:
        return {
            ProjectKind.RUST: "cargo_info",
            ProjectKind.PYTHON: "python_info",
        }.get(self, "project_info")


class OutputMode(Enum):
    """Output destination modes."""
    CLIPBOARD = auto()
    FILE = auto()
    STDOUT = auto()


@dataclass(frozen=True)
class CopyConfig:
    """Immutable run configuration."""
    paths: Tuple[Path, ...]
    cargo_toml: Optional[Path]
    pyproject: Optional[Path]
    output_mode: OutputMode
    output_file: Optional[Path]

    # Size limit (None disables it)
    max_size_bytes: Optional[int]

    # Behavior flags
    use_gitignore: bool

    # Pattern sets
    excluded_dirs: FrozenSet[str] = ExcludedDirs.DIRS
    excluded_extensions: FrozenSet[str] = ExcludedExtensions.EXTENSIONS

    @property
    def notice_stream(self) -> TextIO:
        """Progress notices share stdout unless the document goes there."""
        if self.output_mode == OutputMode.STDOUT:
            return sys.stderr
        return sys.stdout


@dataclass(frozen=True)
class FileEntry:
    """A collected text file."""
    relative_path: str
    content: str


@dataclass(frozen=True)
class ProjectMetadata:
    """Result of manifest detection."""
    kind: ProjectKind = ProjectKind.UNKNOWN
    info: Optional[str] = None
    manifest: Optional[Path] = None


# =============================================================================
# FILTER RULES (Strategy Pattern)
# =============================================================================

class FilterRule(ABC):
    """Abstract base for file filter rules."""

    @abstractmethod
    def check(self, path: Path, config: CopyConfig) -> Tuple[bool, str]:
        """Check if path passes this rule. Returns (passes, reason)."""
        pass

    def notice(self, path: Path) -> Optional[str]:
        """User-facing message printed when this rule rejects a file."""
        return None


class ExtensionRule(FilterRule):
    """Skip binary and asset extensions."""

    def check(self, path: Path, config: CopyConfig) -> Tuple[bool, str]:
        suffix = path.suffix.lower()
        if suffix and suffix in config.excluded_extensions:
            return False, f"Excluded extension: {suffix}"
        return True, ""


class GitignoreRule(FilterRule):
    """Apply .gitignore patterns."""

    def __init__(self, matcher: Optional[Callable[[str], bool]] = None):
        self.matcher = matcher

    def check(self, path: Path, config: CopyConfig) -> Tuple[bool, str]:
        if not self.matcher or not config.use_gitignore:
            return True, ""
        if self.matcher(str(path)):
            return False, "Matched .gitignore"
        return True, ""


class SizeRule(FilterRule):
    """Check file size limit."""

    def check(self, path: Path, config: CopyConfig) -> Tuple[bool, str]:
        if config.max_size_bytes is None:
            return True, ""
        try:
            size = path.stat().st_size
        except OSError:
            # Left to the read step, which logs the failure.
            return True, ""
        if size > config.max_size_bytes:
            return False, f"Too large: {size:,} > {config.max_size_bytes:,}"
        return True, ""

    def notice(self, path: Path) -> Optional[str]:
        return f"Skipping large file: {path}"


def is_excluded_dir(name: str, excluded_dirs: Iterable[str]) -> bool:
    """Exact name match, or fnmatch for entries carrying a wildcard."""
    for pattern in excluded_dirs:
        if any(ch in pattern for ch in "*?["):
            if fnmatch.fnmatchcase(name, pattern):
                return True
        elif name == pattern:
            return True
    return False


# =============================================================================
# FILE FILTER COMPOSITE
# =============================================================================

class FileFilter:
    """Composite filter applying multiple rules."""

    def __init__(
        self,
        config: CopyConfig,
        gitignore_matcher: Optional[Callable[[str], bool]] = None,
    ):
        self.config = config
        self.gitignore_matcher = gitignore_matcher
        self.rules: List[FilterRule] = [
            ExtensionRule(),
            GitignoreRule(gitignore_matcher),
            SizeRule(),
        ]

    def should_include(self, path: Path) -> Tuple[bool, str]:
        """Check if file should be included."""
        for rule in self.rules:
            passes, reason = rule.check(path, self.config)
            if not passes:
                message = rule.notice(path)
                if message:
                    print(message, file=self.config.notice_stream)
                return False, reason
        return True, "Passed all filters"

    def should_descend(self, path: Path) -> bool:
        """Check if a directory should be walked."""
        if is_excluded_dir(path.name, self.config.excluded_dirs):
            return False
        if self.config.use_gitignore and self.gitignore_matcher:
            return not self.gitignore_matcher(str(path))
        return True


# =============================================================================
# CONFIGURATION BUILDER
# =============================================================================

class ConfigBuilder:
    """Builds CopyConfig from CLI arguments."""

    @staticmethod
    def from_args(args: argparse.Namespace) -> CopyConfig:
        """Create config from parsed arguments."""
        if args.output:
            output_mode = OutputMode.FILE
        elif args.stdout:
            output_mode = OutputMode.STDOUT
        else:
            output_mode = OutputMode.CLIPBOARD

        excluded_dirs = set(ExcludedDirs.DIRS)
        excluded_dirs.update(args.exclude_dir or [])

        excluded_extensions = set(ExcludedExtensions.EXTENSIONS)
        for ext in (args.exclude_extension or []):
            ext = ext.lower()
            excluded_extensions.add(ext if ext.startswith(".") else f".{ext}")

        return CopyConfig(
            paths=tuple(Path(p) for p in args.paths),
            cargo_toml=Path(args.cargo_toml) if args.cargo_toml else None,
            pyproject=Path(args.pyproject) if args.pyproject else None,
            output_mode=output_mode,
            output_file=Path(args.output) if args.output else None,
            max_size_bytes=ConfigBuilder._parse_size(args.max_size),
            use_gitignore=not args.no_gitignore,
            excluded_dirs=frozenset(excluded_dirs),
            excluded_extensions=frozenset(excluded_extensions),
        )

    @staticmethod
    def _parse_size(size_str: Optional[str]) -> Optional[int]:
        """Parse size string (e.g., '100k', '2M') to bytes. '0' disables."""
        if not size_str:
            size_str = Defaults.MAX_SIZE

        size_str = size_str.strip().lower()
        if size_str == "0":
            return None

        multipliers = {"k": 1024, "m": 1024**2, "g": 1024**3}

        try:
            if size_str[-1] in multipliers:
                return int(size_str[:-1]) * multipliers[size_str[-1]]
            return int(size_str)
        except (ValueError, IndexError):
            logging.warning(f"Invalid size format: {size_str}, using {Defaults.MAX_SIZE}")
            return ConfigBuilder._parse_size(Defaults.MAX_SIZE)


# =============================================================================
# GIT UTILITIES
# =============================================================================

def load_gitignore(root: Path) -> Optional[Callable[[str], bool]]:
    """Load .gitignore matcher for a directory root if one exists."""
    base_dir = os.path.abspath(root)
    gitignore = Path(base_dir) / ".gitignore"
    if not gitignore.is_file():
        return None

    try:
        matches = gitignore_parser.parse_gitignore(gitignore, base_dir=base_dir)
    except (OSError, UnicodeDecodeError) as e:
        logging.warning(f"Could not parse .gitignore: {e}")
        return None

    # Matcher paths must be absolute to sit under base_dir.
    return lambda path: matches(os.path.abspath(path))


# =============================================================================
# PATH COLLECTOR
# =============================================================================

class PathCollector:
    """Walks input paths and reads every eligible text file."""

    def __init__(self, config: CopyConfig):
        self.config = config
        self.scan_count = 0

    def collect(self) -> List[FileEntry]:
        """Collect files from every configured input path, in order."""
        files: List[FileEntry] = []

        for path in self.config.paths:
            if path.is_file():
                self._process_file(path, path.parent, FileFilter(self.config), files)
            elif path.is_dir():
                self._collect_dir(path, files)
            else:
                logging.warning(f"Path not found: {path}")

        logging.debug(f"Scanned {self.scan_count} files, kept {len(files)}")
        return files

    def _collect_dir(self, root: Path, files: List[FileEntry]) -> None:
        print(f"Processing directory: {root}", file=self.config.notice_stream)

        matcher = load_gitignore(root) if self.config.use_gitignore else None
        filter_ = FileFilter(self.config, matcher)

        for current, dirnames, filenames in os.walk(root):
            current_dir = Path(current)
            dirnames[:] = sorted(
                name for name in dirnames
                if filter_.should_descend(current_dir / name)
            )
            for name in sorted(filenames):
                self._process_file(current_dir / name, root, filter_, files)

    def _process_file(
        self,
        path: Path,
        root: Path,
        filter_: FileFilter,
        files: List[FileEntry],
    ) -> None:
        self.scan_count += 1

        ok, reason = filter_.should_include(path)
        if not ok:
            logging.debug(f"Excluded {path}: {reason}")
            return

        try:
            with open(path, encoding="utf-8", newline="") as f:
                content = f.read()
        except (OSError, UnicodeDecodeError) as e:
            logging.warning(f"Error reading file {path}: {e}")
            return

        files.append(FileEntry(
            relative_path=self._relative_path(path, root),
            content=content,
        ))

    @staticmethod
    def _relative_path(path: Path, root: Path) -> str:
        try:
            rel = path.relative_to(root)
        except ValueError:
            rel = path
        return rel.as_posix().lstrip("/")


# =============================================================================
# MANIFEST EXTRACTION - SHARED HELPERS
# =============================================================================

def _read_toml(path: Path) -> Optional[Dict[str, Any]]:
    """Load a TOML document, or None when it is missing or malformed."""
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except (OSError, UnicodeDecodeError, tomllib.TOMLDecodeError) as e:
        logging.debug(f"Could not parse {path}: {e}")
        return None


def _read_text(path: Path) -> Optional[str]:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logging.debug(f"Could not read {path}: {e}")
        return None


def _table(doc: Any, *keys: str) -> Optional[Dict[str, Any]]:
    """Follow nested keys, returning the table found or None."""
    current = doc
    for key in keys:
        if not isinstance(current, dict):
            return None
        current = current.get(key)
    return current if isinstance(current, dict) else None


def _string(table: Dict[str, Any], key: str) -> Optional[str]:
    value = table.get(key)
    return value if isinstance(value, str) else None


def _format_dependency(name: str, value: Any) -> str:
    """Render a dependency table entry as `name = "version"` or bare name."""
    if isinstance(value, str):
        return f'{name} = "{value}"'
    if isinstance(value, dict) and isinstance(value.get("version"), str):
        return f'{name} = "{value["version"]}"'
    return name


def _string_items(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, str)]


def _add_basics(lines: List[str], table: Dict[str, Any], name_key: str = "name") -> None:
    name = _string(table, name_key)
    if name is not None:
        lines.append(f"Project Name: {name}")
    version = _string(table, "version")
    if version is not None:
        lines.append(f"Version: {version}")
    description = _string(table, "description")
    if description is not None:
        lines.append(f"Description: {description}")


def _add_section(lines: List[str], title: str, entries: Sequence[str]) -> None:
    if not entries:
        return
    lines.append("")
    lines.append(f"{title}:")
    lines.extend(f"- {entry}" for entry in entries)


def _add_groups(lines: List[str], groups: Sequence[Tuple[str, Sequence[str]]]) -> None:
    if not groups:
        return
    lines.append("")
    lines.append("Optional Dependencies:")
    for group, entries in groups:
        lines.append(f"Group '{group}':")
        lines.extend(f"  - {entry}" for entry in entries)


def _render(lines: Sequence[str]) -> str:
    return "".join(f"{line}\n" for line in lines)


# =============================================================================
# CARGO MANIFEST
# =============================================================================

def extract_cargo_info(cargo_path: Path) -> Optional[str]:
    """Summarise a Cargo.toml. Returns None if it cannot be parsed."""
    doc = _read_toml(cargo_path)
    if doc is None:
        return None

    lines: List[str] = []
    package = _table(doc, "package")
    if package:
        _add_basics(lines, package)

    for key, title in (("dependencies", "Dependencies"),
                       ("dev-dependencies", "Dev Dependencies")):
        deps = _table(doc, key) or {}
        _add_section(lines, title, [_format_dependency(n, v) for n, v in deps.items()])

    return _render(lines)


# =============================================================================
# PYPROJECT.TOML
# =============================================================================

def _poetry_info(poetry: Dict[str, Any]) -> List[str]:
    lines = ["Project Type: Python (Poetry)"]
    _add_basics(lines, poetry)

    deps = _table(poetry, "dependencies") or {}
    _add_section(lines, "Dependencies", [
        _format_dependency(name, value)
        for name, value in deps.items()
        if name != "python"
    ])

    dev_deps = _table(poetry, "dev-dependencies") or {}
    _add_section(lines, "Dev Dependencies", [
        _format_dependency(name, value) for name, value in dev_deps.items()
    ])

    groups = []
    for group, table in (_table(poetry, "group") or {}).items():
        group_deps = _table(table, "dependencies") or {}
        groups.append((group, [_format_dependency(n, v) for n, v in group_deps.items()]))
    _add_groups(lines, groups)

    return lines


def _pep621_info(project: Dict[str, Any]) -> List[str]:
    lines = ["Project Type: Python (PEP 621)"]
    _add_basics(lines, project)
    if "version" not in project and "version" in _string_items(project.get("dynamic")):
        lines.append("Version: dynamic")

    _add_section(lines, "Dependencies", _string_items(project.get("dependencies")))

    optional = _table(project, "optional-dependencies") or {}
    _add_groups(lines, [(group, _string_items(deps)) for group, deps in optional.items()])

    return lines


def _flit_info(metadata: Dict[str, Any]) -> List[str]:
    lines = ["Project Type: Python (Flit)"]
    module = _string(metadata, "module")
    if module is not None:
        lines.append(f"Project Name: {module}")
    description = _string(metadata, "description")
    if description is not None:
        lines.append(f"Description: {description}")

    _add_section(lines, "Dependencies", _string_items(metadata.get("requires")))

    extras = _table(metadata, "requires-extra") or {}
    _add_groups(lines, [(group, _string_items(deps)) for group, deps in extras.items()])

    return lines


def extract_pyproject_info(pyproject_path: Path) -> Optional[str]:
    """Summarise a pyproject.toml: Poetry, then PEP 621, then Flit."""
    doc = _read_toml(pyproject_path)
    if doc is None:
        return None

    poetry = _table(doc, "tool", "poetry")
    if poetry is not None:
        return _render(_poetry_info(poetry))

    project = _table(doc, "project")
    if project is not None:
        return _render(_pep621_info(project))

    flit = _table(doc, "tool", "flit", "metadata")
    if flit is not None:
        return _render(_flit_info(flit))

    return _render([
        "Project Type: Python (pyproject.toml format not recognized)",
        "A pyproject.toml file was found but its format couldn't be parsed.",
    ])


# =============================================================================
# SETUP.PY SCANNER
# =============================================================================
#
# setup.py is never executed or parsed as Python. Keyword values are picked
# out with a literal pattern search, and the install_requires list and the
# extras_require dict are split by a character scanner that tracks quotes,
# comments and bracket depth. Values built dynamically yield nothing.

QUOTES = "\"'"
OPENERS = "[({"
CLOSERS = "])}"


def _cleanup(text: str) -> str:
    text = text.strip()
    if len(text) >= 2 and text[0] == text[-1] and text[0] in QUOTES:
        text = text[1:-1]
    return text


def extract_setup_param(content: str, param: str) -> Optional[str]:
    """First non-empty quoted value assigned to `param` (`=` or `:`)."""
    pattern = re.compile(
        rf"(?<![\w.])(['\"]?){re.escape(param)}\1\s*[=:]\s*(['\"])(.*?)\2"
    )
    for match in pattern.finditer(content):
        if match.group(3):
            return match.group(3)
    return None


def _scan_list(text: str, start: int) -> List[str]:
    """Split the list whose opening bracket sits just before `start`."""
    items: List[str] = []
    current: List[str] = []
    depth = 1
    quote: Optional[str] = None
    in_comment = False

    def flush() -> None:
        item = _cleanup("".join(current))
        if item:
            items.append(item)
        current.clear()

    for ch in text[start:]:
        if in_comment:
            in_comment = ch != "\n"
        elif quote is not None:
            if ch == quote:
                quote = None
            else:
                current.append(ch)
        elif ch in QUOTES:
            quote = ch
        elif ch == "#":
            in_comment = True
        elif ch in OPENERS:
            depth += 1
        elif ch in CLOSERS:
            depth -= 1
            if depth == 0:
                flush()
                break
        elif ch == "," and depth == 1:
            flush()
        else:
            current.append(ch)

    return items


def extract_setup_list_param(content: str, param: str) -> Optional[List[str]]:
    """Items of a literal `param = [...]` list, or None if absent."""
    match = re.search(rf"(?<![\w.]){re.escape(param)}[ \t]*=[ \t]*\[", content)
    if not match:
        return None
    return _scan_list(content, match.end())


def extract_setup_dict_param(
    content: str, param: str
) -> Optional[List[Tuple[str, List[str]]]]:
    """(key, list items) pairs of a literal `param = {...}` dict, or None."""
    match = re.search(rf"(?<![\w.]){re.escape(param)}[ \t]*=[ \t]*\{{", content)
    if not match:
        return None

    groups: List[Tuple[str, List[str]]] = []
    key: List[str] = []
    value: List[str] = []
    depth = 1
    quote: Optional[str] = None
    in_comment = False
    in_key = True

    def flush() -> None:
        name = _cleanup("".join(key))
        raw = "".join(value)
        bracket = raw.find("[")
        if name and bracket != -1:
            groups.append((name, _scan_list(raw, bracket + 1)))
        key.clear()
        value.clear()

    for ch in content[match.end():]:
        target = key if in_key else value
        if in_comment:
            in_comment = ch != "\n"
        elif quote is not None:
            # Quotes stay in the raw value so items are re-split safely.
            target.append(ch)
            if ch == quote:
                quote = None
        elif ch in QUOTES:
            quote = ch
            target.append(ch)
        elif ch == "#":
            in_comment = True
        elif ch in OPENERS:
            depth += 1
            target.append(ch)
        elif ch in CLOSERS:
            depth -= 1
            if depth == 0:
                flush()
                break
            target.append(ch)
        elif ch == ":" and in_key and depth == 1:
            in_key = False
        elif ch == "," and not in_key and depth == 1:
            flush()
            in_key = True
        else:
            target.append(ch)

    return groups


def extract_setup_py_info(setup_path: Path) -> Optional[str]:
    """Summarise a setup.py by shallow text scanning."""
    content = _read_text(setup_path)
    if content is None:
        return None

    lines = ["Project Type: Python (setup.py)"]
    for param, label in (("name", "Project Name"),
                         ("version", "Version"),
                         ("description", "Description")):
        value = extract_setup_param(content, param)
        if value is not None:
            lines.append(f"{label}: {value}")

    _add_section(lines, "Dependencies", extract_setup_list_param(content, "install_requires") or [])
    _add_groups(lines, extract_setup_dict_param(content, "extras_require") or [])

    return _render(lines)


# =============================================================================
# REQUIREMENTS.TXT
# =============================================================================

def extract_requirements_info(requirements_path: Path) -> Optional[str]:
    """One dependency per non-blank, non-comment line; trailing comments cut."""
    content = _read_text(requirements_path)
    if content is None:
        return None

    dependencies = []
    for line in content.splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        dep = line.split("#", 1)[0].strip()
        if dep:
            dependencies.append(dep)

    lines = ["Project Type: Python (requirements.txt)"]
    _add_section(lines, "Dependencies", dependencies)
    return _render(lines)


def extract_python_manifest_info(path: Path) -> Optional[str]:
    """Dispatch an explicitly named Python manifest on its file name."""
    name = path.name.lower()
    if name == ManifestNames.SETUP_PY:
        return extract_setup_py_info(path)
    if name.startswith("requirements") and name.endswith(".txt"):
        return extract_requirements_info(path)
    return extract_pyproject_info(path)


# =============================================================================
# MANIFEST DETECTOR
# =============================================================================

PYTHON_MANIFESTS: Tuple[Tuple[str, Callable[[Path], Optional[str]]], ...] = (
    (ManifestNames.PYPROJECT, extract_pyproject_info),
    (ManifestNames.SETUP_PY, extract_setup_py_info),
    (ManifestNames.REQUIREMENTS, extract_requirements_info),
)


def find_project_root_dir(paths: Sequence[Path]) -> Optional[Path]:
    """Directory the manifest search starts from: the first input path's."""
    if not paths:
        return None
    first = paths[0]
    return first.parent if first.is_file() else first


class ManifestDetector:
    """Locates the nearest recognised manifest and extracts its metadata."""

    @staticmethod
    def detect(
        start_dir: Optional[Path],
        cargo_toml: Optional[Path] = None,
        pyproject: Optional[Path] = None,
    ) -> ProjectMetadata:
        """Explicit overrides first (Cargo wins), then an upward walk."""
        if cargo_toml is not None:
            info = extract_cargo_info(cargo_toml)
            if info is not None:
                return ProjectMetadata(ProjectKind.RUST, info or None, cargo_toml)

        if pyproject is not None and pyproject.is_file():
            info = extract_python_manifest_info(pyproject)
            if info is not None:
                return ProjectMetadata(ProjectKind.PYTHON, info or None, pyproject)

        if start_dir is None:
            return ProjectMetadata()

        start = start_dir.resolve()
        for directory in (start, *start.parents):
            found = ManifestDetector._search_level(directory)
            if found is not None:
                logging.debug(f"Using manifest {found.manifest}")
                return found

        return ProjectMetadata()

    @staticmethod
    def _search_level(directory: Path) -> Optional[ProjectMetadata]:
        """Check one directory level: Cargo first, then Python manifests."""
        cargo = directory / ManifestNames.CARGO
        if cargo.is_file():
            info = extract_cargo_info(cargo)
            if info is not None:
                return ProjectMetadata(ProjectKind.RUST, info or None, cargo)

        for name, extract in PYTHON_MANIFESTS:
            candidate = directory / name
            if not candidate.is_file():
                continue
            info = extract(candidate)
            if info is not None:
                return ProjectMetadata(ProjectKind.PYTHON, info or None, candidate)

        return None


# =============================================================================
# TREE RENDERER
# =============================================================================

def render_tree(paths: Iterable[str]) -> str:
    """
    Render relative paths as an indented pseudo-tree.

    Paths are sorted first, so the output does not depend on input order.
    A stack of open directory paths is kept; a directory line is emitted
    only when the segment at that depth differs from what is open, then
    the file itself is emitted one level below its parent.
    """
    lines: List[str] = []
    open_dirs: List[str] = []

    for path in sorted(paths):
        parts = path.split("/")

        for depth, part in enumerate(parts[:-1]):
            dir_path = "/".join(parts[:depth + 1])
            if depth < len(open_dirs) and open_dirs[depth] == dir_path:
                continue
            del open_dirs[depth:]
            open_dirs.append(dir_path)
            lines.append(f"{' ' * (depth * TREE_INDENT)}{GLYPH_LAST} {part}/")

        indent = " " * ((len(parts) - 1) * TREE_INDENT)
        lines.append(f"{indent}{GLYPH_CHILD} {parts[-1]}")

    return "".join(f"{line}\n" for line in lines)


# =============================================================================
# FORMATTER
# =============================================================================

class PromptFormatter:
    """Formats collected files and metadata as a tagged document."""

    def format(self, files: Sequence[FileEntry], metadata: ProjectMetadata) -> str:
        """Format complete output with file contents."""
        parts = ["<project>\n"]

        if metadata.kind == ProjectKind.UNKNOWN:
            parts.append(self._block(metadata.kind.info_tag, f"{UNKNOWN_PROJECT_NOTICE}\n"))
        elif metadata.info:
            parts.append(self._block(metadata.kind.info_tag, metadata.info))

        tree = render_tree(f.relative_path for f in files)
        parts.append(self._block("file_structure", tree))

        for f in files:
            parts.append(f'<file path="{f.relative_path}">\n{f.content}\n</file>\n\n')

        parts.append("</project>")
        return "".join(parts)

    def summary(
        self,
        files: Sequence[FileEntry],
        metadata: ProjectMetadata,
        content: str,
    ) -> str:
        """Format the run summary printed after output."""
        return "\n".join([
            f"Files processed: {len(files)}",
            f"Total size: {len(content)} characters",
            f"Project type: {metadata.kind.value}",
        ])

    @staticmethod
    def _block(tag: str, body: str) -> str:
        return f"<{tag}>\n{body}</{tag}>\n\n"


# =============================================================================
# OUTPUT WRITER
# =============================================================================

class OutputWriter:
    """Handles output to various destinations."""

    @staticmethod
    def write(
        content: str,
        summary: str,
        config: CopyConfig,
    ) -> bool:
        """Write content to configured destination."""
        if config.output_mode == OutputMode.FILE:
            ok = OutputWriter._write_file(content, config.output_file)
        elif config.output_mode == OutputMode.STDOUT:
            ok = OutputWriter._write_stdout(content)
        else:
            ok = OutputWriter._write_clipboard(content)

        if ok:
            print(summary, file=config.notice_stream)
        return ok

    @staticmethod
    def _write_file(content: str, path: Optional[Path]) -> bool:
        """Write to file."""
        if not path:
            return False
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
            print(f"✅ Written to {path}", file=sys.stderr)
            return True
        except OSError as e:
            print(f"❌ Error writing file: {e}", file=sys.stderr)
            return False

    @staticmethod
    def _write_stdout(content: str) -> bool:
        """Write to stdout."""
        try:
            print(content)
            return True
        except OSError as e:
            print(f"❌ Error writing to stdout: {e}", file=sys.stderr)
            return False

    @staticmethod
    def _write_clipboard(content: str) -> bool:
        """Copy to clipboard."""
        try:
            pyperclip.copy(content)
        except pyperclip.PyperclipException as e:
            print(f"❌ Clipboard error: {e}", file=sys.stderr)
            return False
        print("✅ Files successfully copied to clipboard!")
        return True


# =============================================================================
# CLI PARSER
# =============================================================================

def create_parser() -> argparse.ArgumentParser:
    """Create argument parser."""
    parser = argparse.ArgumentParser(
        prog="llm-cocop",
        description="Copy project files to the clipboard in an LLM-friendly format",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  llm-cocop .                          # Copy current project to clipboard
  llm-cocop src/ README.md             # Copy selected paths
  llm-cocop src/ --cargo-toml Cargo.toml
  llm-cocop . --stdout > context.txt   # Print instead of copying
        """,
    )

    parser.add_argument(
        "paths",
        nargs="+",
        metavar="PATH",
        help="Files or directories to include",
    )

    # Manifest overrides
    manifest = parser.add_argument_group("Project Metadata")
    manifest.add_argument("--cargo-toml", metavar="FILE", help="Explicit Cargo.toml to read metadata from")
    manifest.add_argument("--pyproject", metavar="FILE", help="Explicit pyproject.toml, setup.py or requirements.txt")

    # Output options
    out = parser.add_argument_group("Output Options")
    out_excl = out.add_mutually_exclusive_group()
    out_excl.add_argument("-o", "--output", metavar="FILE", help="Write to file instead of the clipboard")
    out_excl.add_argument("--stdout", action="store_true", help="Print to stdout instead of the clipboard")

    # Filtering
    filt = parser.add_argument_group("Filtering")
    filt.add_argument("--exclude-dir", action="append", metavar="NAME", help="Additional directory name to skip")
    filt.add_argument("--exclude-extension", action="append", metavar="EXT", help="Additional extension to skip")
    filt.add_argument("--max-size", default=Defaults.MAX_SIZE, help=f"Max file size (default: {Defaults.MAX_SIZE}, 0 for no limit)")
    filt.add_argument("--no-gitignore", action="store_true", help="Do not apply .gitignore patterns")

    # Meta
    meta = parser.add_argument_group("Information")
    meta.add_argument("-v", "--verbose", action="store_true", help="Log excluded files and manifest lookups")
    meta.add_argument("--version", action="version", version=f"%(prog)s {get_version()}")

    return parser


# =============================================================================
# MAIN
# =============================================================================

def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        config = ConfigBuilder.from_args(args)
        print("Processing paths...", file=config.notice_stream)

        files = PathCollector(config).collect()
        if not files:
            logging.warning("No files matched the filters")

        metadata = ManifestDetector.detect(
            find_project_root_dir(config.paths),
            config.cargo_toml,
            config.pyproject,
        )

        formatter = PromptFormatter()
        content = formatter.format(files, metadata)
        summary = formatter.summary(files, metadata, content)

        success = OutputWriter.write(content, summary, config)
        return 0 if success else 1

    except KeyboardInterrupt:
        print("\n⚠️ Interrupted", file=sys.stderr)
        return 130
    except Exception as e:
        logging.exception("Critical error")
        print(f"❌ Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
