from __future__ import annotations
from typing import Dict, List, Optional, Pattern, Mapping
from dataclasses import dataclass
from pathlib import PurePosixPath
import re

SHEBANG = re.compile(r'^#!')
XML_DECLARATION = re.compile(r'^<\?xml\b.*\?>\s*$')
PHP_OPEN_TAG = re.compile(r'^<\?php\b')


@dataclass(frozen=True)
class CommentStyle:
    name: str
    line_prefix: str
    first_line: Optional[str] = None
    last_line: Optional[str] = None
    preamble: Optional[Pattern[str]] = SHEBANG

    @property
    def is_block(self) -> bool:
        return self.first_line is not None

    def wrap(self, text: str) -> List[str]:
        """
        Turns header text into comment lines, without line terminators.
        Blank lines keep the bare prefix; trailing whitespace is trimmed.
        """
        lines = []
        if self.first_line is not None:
            lines.append(self.first_line)
        for line in text.split('\n'):
            lines.append(f"{self.line_prefix} {line}".rstrip() if line.strip() else self.line_prefix.rstrip())
        if self.last_line is not None:
            lines.append(self.last_line)
        return lines

    def starts_comment(self, line: str) -> bool:
        marker = (self.first_line or self.line_prefix).strip()
        return bool(marker) and line.lstrip().startswith(marker)

    def comment_end(self, line: str, start: int = 0) -> int:
        """
        Returns the column just past the closing delimiter found in ``line`` at or
        after ``start``, or -1 when the block does not close on this line.
        """
        assert self.last_line is not None
        closer = self.last_line.strip()
        i = line.find(closer, start)
        return -1 if i < 0 else i + len(closer)


# ============================================================
# Comment styles
# ============================================================
SCRIPT_STYLE       = CommentStyle("SCRIPT_STYLE", "#")
DOUBLESLASH_STYLE  = CommentStyle("DOUBLESLASH_STYLE", "//")
DOUBLEDASHES_STYLE = CommentStyle("DOUBLEDASHES_STYLE", "--")
SEMICOLON_STYLE    = CommentStyle("SEMICOLON_STYLE", ";;")
PERCENT_STYLE      = CommentStyle("PERCENT_STYLE", "%")
REM_STYLE          = CommentStyle("REM_STYLE", "REM", preamble=None)
SLASHSTAR_STYLE    = CommentStyle("SLASHSTAR_STYLE", " *", "/*", " */")
JAVADOC_STYLE      = CommentStyle("JAVADOC_STYLE", " *", "/**", " */")
XML_STYLE          = CommentStyle("XML_STYLE", "  ", "<!--", "-->", preamble=XML_DECLARATION)
JINJA_STYLE        = CommentStyle("JINJA_STYLE", "  ", "{#", "#}", preamble=None)
PHP_STYLE          = CommentStyle("PHP_STYLE", " *", "/*", " */", preamble=PHP_OPEN_TAG)

STYLES_BY_NAME: Dict[str, CommentStyle] = {
    style.name: style for style in (
        SCRIPT_STYLE, DOUBLESLASH_STYLE, DOUBLEDASHES_STYLE, SEMICOLON_STYLE, PERCENT_STYLE,
        REM_STYLE, SLASHSTAR_STYLE, JAVADOC_STYLE, XML_STYLE, JINJA_STYLE,
        PHP_STYLE,
    )
}

# ============================================================
# Styles by specific file name (case sensitive)
# ============================================================
STYLE_BY_FILENAME: Dict[str, CommentStyle] = {
    "Dockerfile":       SCRIPT_STYLE,
    "Makefile":         SCRIPT_STYLE,
    "makefile":         SCRIPT_STYLE,
    "GNUmakefile":      SCRIPT_STYLE,
    "CMakeLists.txt":   SCRIPT_STYLE,
    "Rakefile":         SCRIPT_STYLE,
    "Gemfile":          SCRIPT_STYLE,
    "Vagrantfile":      SCRIPT_STYLE,
    "Jenkinsfile":      DOUBLESLASH_STYLE,
    "BUILD":            SCRIPT_STYLE,
    "WORKSPACE":        SCRIPT_STYLE,
    "requirements.txt": SCRIPT_STYLE,
    ".gitignore":       SCRIPT_STYLE,
    ".gitattributes":   SCRIPT_STYLE,
    ".dockerignore":    SCRIPT_STYLE,
    ".npmignore":       SCRIPT_STYLE,
    ".editorconfig":    SCRIPT_STYLE,
    ".env":             SCRIPT_STYLE,
    ".env.example":     SCRIPT_STYLE,
}

# ============================================================
# Styles by file extension (case insensitive, MUST be lower case)
# ============================================================
STYLE_BY_EXTENSION: Dict[str, CommentStyle] = {
    # -- Hash comments --
    ".py":          SCRIPT_STYLE,
    ".pyi":         SCRIPT_STYLE,
    ".pyx":         SCRIPT_STYLE,
    ".sh":          SCRIPT_STYLE,
    ".bash":        SCRIPT_STYLE,
    ".zsh":         SCRIPT_STYLE,
    ".fish":        SCRIPT_STYLE,
    ".ps1":         SCRIPT_STYLE,
    ".rb":          SCRIPT_STYLE,
    ".pl":          SCRIPT_STYLE,
    ".pm":          SCRIPT_STYLE,
    ".r":           SCRIPT_STYLE,
    ".jl":          SCRIPT_STYLE,
    ".nim":         SCRIPT_STYLE,
    ".toml":        SCRIPT_STYLE,
    ".yaml":        SCRIPT_STYLE,
    ".yml":         SCRIPT_STYLE,
    ".cfg":         SCRIPT_STYLE,
    ".conf":        SCRIPT_STYLE,
    ".properties":  SCRIPT_STYLE,
    ".cmake":       SCRIPT_STYLE,
    ".mk":          SCRIPT_STYLE,
    ".dockerfile":  SCRIPT_STYLE,
    ".tf":          SCRIPT_STYLE,
    ".hcl":         SCRIPT_STYLE,
    ".bzl":         SCRIPT_STYLE,
    ".graphql":     SCRIPT_STYLE,
    # -- Double-slash comments --
    ".rs":          DOUBLESLASH_STYLE,
    ".go":          DOUBLESLASH_STYLE,
    ".c":           DOUBLESLASH_STYLE,
    ".h":           DOUBLESLASH_STYLE,
    ".cc":          DOUBLESLASH_STYLE,
    ".cpp":         DOUBLESLASH_STYLE,
    ".cxx":         DOUBLESLASH_STYLE,
    ".hpp":         DOUBLESLASH_STYLE,
    ".hh":          DOUBLESLASH_STYLE,
    ".cs":          DOUBLESLASH_STYLE,
    ".java":        DOUBLESLASH_STYLE,
    ".kt":          DOUBLESLASH_STYLE,
    ".kts":         DOUBLESLASH_STYLE,
    ".scala":       DOUBLESLASH_STYLE,
    ".sc":          DOUBLESLASH_STYLE,
    ".groovy":      DOUBLESLASH_STYLE,
    ".gradle":      DOUBLESLASH_STYLE,
    ".swift":       DOUBLESLASH_STYLE,
    ".dart":        DOUBLESLASH_STYLE,
    ".zig":         DOUBLESLASH_STYLE,
    ".proto":       DOUBLESLASH_STYLE,
    ".js":          DOUBLESLASH_STYLE,
    ".jsx":         DOUBLESLASH_STYLE,
    ".mjs":         DOUBLESLASH_STYLE,
    ".cjs":         DOUBLESLASH_STYLE,
    ".ts":          DOUBLESLASH_STYLE,
    ".tsx":         DOUBLESLASH_STYLE,
    ".mts":         DOUBLESLASH_STYLE,
    ".cts":         DOUBLESLASH_STYLE,
    # -- Block comments --
    ".css":         SLASHSTAR_STYLE,
    ".scss":        SLASHSTAR_STYLE,
    ".less":        SLASHSTAR_STYLE,
    ".m":           SLASHSTAR_STYLE,
    ".xml":         XML_STYLE,
    ".xsd":         XML_STYLE,
    ".xsl":         XML_STYLE,
    ".html":        XML_STYLE,
    ".htm":         XML_STYLE,
    ".svg":         XML_STYLE,
    ".vue":         XML_STYLE,
    ".md":          XML_STYLE,
    ".markdown":    XML_STYLE,
    ".j2":          JINJA_STYLE,
    ".jinja":       JINJA_STYLE,
    ".jinja2":      JINJA_STYLE,
    ".php":         PHP_STYLE,
    ".phtml":       PHP_STYLE,
    # -- Others --
    ".sql":         DOUBLEDASHES_STYLE,
    ".lua":         DOUBLEDASHES_STYLE,
    ".hs":          DOUBLEDASHES_STYLE,
    ".elm":         DOUBLEDASHES_STYLE,
    ".clj":         SEMICOLON_STYLE,
    ".cljs":        SEMICOLON_STYLE,
    ".cljc":        SEMICOLON_STYLE,
    ".el":          SEMICOLON_STYLE,
    ".lisp":        SEMICOLON_STYLE,
    ".scm":         SEMICOLON_STYLE,
    ".ini":         SEMICOLON_STYLE,
    ".erl":         PERCENT_STYLE,
    ".hrl":         PERCENT_STYLE,
    ".tex":         PERCENT_STYLE,
    ".bat":         REM_STYLE,
    ".cmd":         REM_STYLE,
}


def language_of(path: str | PurePosixPath, mapping: Mapping[str, CommentStyle] | None = None) -> Optional[str]:
    """
    Returns the lookup key (file name or lower case extension) of the comment style
    that applies to ``path``, or None when no style is known.

    Keys present in ``mapping`` take precedence over the built-in tables.
    """
    p = PurePosixPath(path)
    name = p.name
    ext = p.suffix.lower()
    mapping = mapping or {}

    for key in (name, ext):
        if key and key in mapping:
            return key
    if name in STYLE_BY_FILENAME:
        return name
    if ext in STYLE_BY_EXTENSION:
        return ext
    return None


def style_for(language: str | None, mapping: Mapping[str, CommentStyle] | None = None) -> Optional[CommentStyle]:
    if language is None:
        return None
    if mapping and language in mapping:
        return mapping[language]
    return STYLE_BY_FILENAME.get(language) or STYLE_BY_EXTENSION.get(language)
