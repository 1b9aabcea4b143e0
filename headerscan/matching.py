"""
Ordered include/exclude rules deciding which files are subject to header enforcement.

Rules are evaluated as a left-to-right fold over a boolean accumulator that starts
at "not covered". Every rule whose glob matches the path overwrites the verdict:

* ``Include``           -> covered
* ``Exclude``           -> not covered
* ``ReincludeOverride`` -> covered (written ``!glob`` in an exclude list)

Globs follow gitignore wildmatch semantics (``*`` stays within a path segment,
``**`` crosses segments, a glob without a slash matches at any depth).
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import List, Sequence, Iterable
import enum

from pathspec import GitIgnoreSpec

from headerscan.errors import MatchError


class RuleKind(enum.Enum):
    INCLUDE = "include"
    EXCLUDE = "exclude"
    REINCLUDE = "reinclude"


@dataclass(frozen=True)
class Rule:
    kind: RuleKind
    glob: str
    spec: GitIgnoreSpec = field(compare=False, repr=False)

    def matches(self, path: str) -> bool:
        return self.spec.match_file(path)

    def apply(self, covered: bool, path: str) -> bool:
        """
        Returns the verdict after this rule has seen ``path``.
        """
        if not self.matches(path):
            return covered
        return self.kind is not RuleKind.EXCLUDE

    def __str__(self) -> str:
        if self.kind is RuleKind.REINCLUDE:
            return f"!{self.glob}"
        return f"{self.kind.value}:{self.glob}"


def _compile(kind: RuleKind, glob: str) -> Rule:
    if not isinstance(glob, str) or not glob.strip():
        raise MatchError(f"Invalid glob {glob!r}: expected a non-empty string")
    if glob.startswith('!'):
        raise MatchError(f"Invalid glob {glob!r}: negation is only allowed in excludes")
    try:
        spec = GitIgnoreSpec.from_lines([glob])
    except ValueError as e:
        raise MatchError(f"Invalid glob {glob!r}: {e}") from e
    return Rule(kind, glob, spec)


def Include(glob: str) -> Rule:
    return _compile(RuleKind.INCLUDE, glob)


def Exclude(glob: str) -> Rule:
    return _compile(RuleKind.EXCLUDE, glob)


def ReincludeOverride(glob: str) -> Rule:
    return _compile(RuleKind.REINCLUDE, glob)


def compile_rules(includes: Iterable[str] | None, excludes: Iterable[str]) -> List[Rule]:
    """
    Builds the ordered rule list from configuration values.

    Includes come first (``**`` when none are given), then the excludes in declaration
    order, where a leading ``!`` turns an exclude into a re-inclusion.
    """
    includes = list(includes) if includes is not None else ['**']
    rules = [Include(glob) for glob in includes]
    for glob in excludes:
        if isinstance(glob, str) and glob.startswith('!'):
            rules.append(ReincludeOverride(glob[1:]))
        else:
            rules.append(Exclude(glob))
    return rules


def covers(path: str, rules: Sequence[Rule]) -> bool:
    """
    Returns True if ``path`` (relative, posix separators) is subject to enforcement.
    """
    if not rules:
        return True
    covered = False
    for rule in rules:
        covered = rule.apply(covered, path)
    return covered
