from __future__ import annotations
from typing import Any, Dict, List, Mapping, Tuple
from dataclasses import dataclass, field
from pathlib import Path
import datetime
import logging
import tomllib

from headerscan.errors import ConfigFileError, MissingPropertyError
from headerscan.matching import Rule, compile_rules
from headerscan.rendering import substitute
from headerscan.styles import CommentStyle, STYLES_BY_NAME
from headerscan.detection import DEFAULT_KEYWORDS, year_values

DEFAULT_CONFIG_NAME = "licenserc.toml"
BUNDLED_TEMPLATES = Path(__file__).parent / "templates"

# Files that never carry a header: VCS metadata, license texts, formats without comments.
DEFAULT_EXCLUDES: List[str] = [
    "**/.git/**",
    "**/.hg/**",
    "**/.svn/**",
    "**/.idea/**",
    "**/.vscode/**",
    "**/LICENSE",
    "**/LICENSE.*",
    "**/LICENSE-*",
    "**/COPYING",
    "**/NOTICE",
    "**/*.json",
    "**/*.lock",
    "**/*.sum",
    "**/*.png",
    "**/*.jpg",
    "**/*.jpeg",
    "**/*.gif",
    "**/*.ico",
    "**/*.bmp",
    "**/*.webp",
    "**/*.pdf",
    "**/*.zip",
    "**/*.gz",
    "**/*.tar",
    "**/*.jar",
    "**/*.class",
    "**/*.so",
    "**/*.dll",
    "**/*.dylib",
    "**/*.exe",
    "**/*.woff",
    "**/*.woff2",
    "**/*.ttf",
    "**/*.eot",
]

KNOWN_KEYS = {
    "headerPath", "inlineHeader", "includes", "excludes", "keywords",
    "useDefaultExcludes", "useGitignore", "properties", "mapping",
}


@dataclass(frozen=True)
class Config:
    root: Path
    template: str
    path: Path | None = None
    properties: Mapping[str, str] = field(default_factory=dict)
    includes: List[str] | None = None
    excludes: List[str] = field(default_factory=list)
    keywords: Tuple[str, ...] = DEFAULT_KEYWORDS
    use_default_excludes: bool = True
    use_gitignore: bool = True
    mapping: Mapping[str, CommentStyle] = field(default_factory=dict)
    rules: List[Rule] = field(default_factory=list, compare=False)

    @property
    def years(self) -> Tuple[str, ...]:
        return year_values(self.properties)


def _string_list(doc: Mapping[str, Any], key: str, path: Path) -> List[str] | None:
    value = doc.get(key)
    if value is None:
        return None
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ConfigFileError(path, f"'{key}' must be a list of strings")
    return list(value)


def _flag(doc: Mapping[str, Any], key: str, default: bool, path: Path) -> bool:
    value = doc.get(key, default)
    if not isinstance(value, bool):
        raise ConfigFileError(path, f"'{key}' must be a boolean")
    return value


def _properties(doc: Mapping[str, Any], path: Path) -> Dict[str, str]:
    raw = doc.get("properties", {})
    if not isinstance(raw, dict):
        raise ConfigFileError(path, "'properties' must be a table")
    properties: Dict[str, str] = {}
    for name, value in raw.items():
        if isinstance(value, bool):
            properties[name] = "true" if value else "false"
        elif isinstance(value, (str, int, float, datetime.date, datetime.time)):
            properties[name] = str(value)
        else:
            raise ConfigFileError(path, f"Property '{name}' must be a scalar value")
    return properties


def _mapping(doc: Mapping[str, Any], path: Path) -> Dict[str, CommentStyle]:
    raw = doc.get("mapping", {})
    if not isinstance(raw, dict):
        raise ConfigFileError(path, "'mapping' must be a table")
    mapping: Dict[str, CommentStyle] = {}
    for key, style_name in raw.items():
        style = STYLES_BY_NAME.get(style_name) if isinstance(style_name, str) else None
        if style is None:
            raise ConfigFileError(path, f"Unknown comment style {style_name!r} for '{key}'")
        mapping[key.lower() if key.startswith('.') else key] = style
    return mapping


def read_template(header_path: str, config_dir: Path) -> str:
    """
    Reads the header template, relative to the configuration file. Names that do not
    exist there fall back to the bundled templates (e.g. ``Apache-2.0.txt``).
    """
    candidate = config_dir / header_path
    if not candidate.is_file():
        bundled = BUNDLED_TEMPLATES / header_path
        if not bundled.is_file():
            raise ConfigFileError(candidate, "Missing header template")
        logging.debug(f"Using bundled header template {header_path}")
        candidate = bundled
    try:
        return candidate.read_text(encoding='utf-8')
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigFileError(candidate, f"Unreadable header template ({e})") from e


def parse_config(doc: Mapping[str, Any], root: Path, path: Path) -> Config:
    unknown = sorted(set(doc) - KNOWN_KEYS)
    if unknown:
        raise ConfigFileError(path, f"Unknown configuration keys {', '.join(unknown)}")

    header_path = doc.get("headerPath")
    inline_header = doc.get("inlineHeader")
    if (header_path is None) == (inline_header is None):
        raise ConfigFileError(path, "Exactly one of 'headerPath' and 'inlineHeader' is required")
    if header_path is not None:
        if not isinstance(header_path, str):
            raise ConfigFileError(path, "'headerPath' must be a string")
        template = read_template(header_path, path.parent)
    else:
        if not isinstance(inline_header, str):
            raise ConfigFileError(path, "'inlineHeader' must be a string")
        template = inline_header

    properties = _properties(doc, path)
    try:
        substitute(template, properties)
    except MissingPropertyError as e:
        raise ConfigFileError(path, f"Unbound placeholder in header template ({e.detail})") from e

    includes = _string_list(doc, "includes", path)
    excludes = _string_list(doc, "excludes", path) or []
    keywords = _string_list(doc, "keywords", path)
    use_default_excludes = _flag(doc, "useDefaultExcludes", True, path)

    effective_excludes = (DEFAULT_EXCLUDES if use_default_excludes else []) + excludes
    rules = compile_rules(includes, effective_excludes)

    return Config(
        root=root,
        template=template,
        path=path,
        properties=properties,
        includes=includes,
        excludes=excludes,
        keywords=tuple(keywords) if keywords is not None else DEFAULT_KEYWORDS,
        use_default_excludes=use_default_excludes,
        use_gitignore=_flag(doc, "useGitignore", True, path),
        mapping=_mapping(doc, path),
        rules=rules,
    )


def load_config(root: Path, config_path: Path | None = None) -> Config:
    """
    Loads the configuration for the tree at ``root``.

    Raises ConfigError (or MatchError) for anything that would make the run
    meaningless; nothing in the tree has been touched at that point.
    """
    if not root.is_dir():
        raise ConfigFileError(root, "Root is not a directory")
    path = config_path if config_path is not None else root / DEFAULT_CONFIG_NAME
    if not path.is_file():
        raise ConfigFileError(path, "Missing configuration file")

    try:
        with path.open('rb') as f:
            doc = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigFileError(path, f"Invalid TOML ({e})") from e
    except OSError as e:
        raise ConfigFileError(path, f"Unreadable configuration file ({e})") from e

    config = parse_config(doc, root, path)
    logging.debug(f"Loaded {path}: {len(config.rules)} rules, {len(config.properties)} properties")
    return config
