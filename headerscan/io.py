from __future__ import annotations
from typing import Callable, Generator, List
from dataclasses import dataclass
from pathlib import Path
from difflib import unified_diff
import contextlib
import logging
import os
import shutil
import tempfile

from pathspec import GitIgnoreSpec

##################################################################################################
# File Reading/Writing
##################################################################################################

def read_text_file(path: Path) -> str:
    """
    Reads a UTF-8 file without translating line endings.
    """
    assert isinstance(path, Path), f"Expected Path, got {type(path)}"
    return path.read_bytes().decode('utf-8')


def _count_changes(old: str, new: str) -> tuple[int, int]:
    added = removed = 0
    for line in unified_diff(old.splitlines(), new.splitlines(), lineterm=''):
        if line.startswith('+++') or line.startswith('---'):
            continue
        if line.startswith('+'):
            added += 1
        elif line.startswith('-'):
            removed += 1
    return added, removed


def write_text_file(path: Path, content: str) -> bool:
    """
    Replaces ``path`` with ``content`` atomically: the bytes go to a temporary file in
    the same directory which is then renamed over the original, so a concurrent reader
    sees either the old or the new file. Permission bits are carried over.

    Returns False when the file already holds exactly ``content``.
    """
    assert isinstance(path, Path), f"Expected Path, got {type(path)}"
    content_bytes = content.encode('utf-8')

    old_bytes = path.read_bytes() if path.exists() else None
    if old_bytes == content_bytes:
        return False

    if old_bytes is not None:
        added, removed = _count_changes(old_bytes.decode('utf-8', errors='replace'), content)
        logging.debug(f'Modifying {path}: {removed} lines removed, {added} lines added')
    else:
        logging.debug(f'Writing to {path}')

    fd, tmp_name = tempfile.mkstemp(prefix=f'.{path.name}.', suffix='.tmp', dir=path.parent)
    try:
        with os.fdopen(fd, 'wb') as f:
            f.write(content_bytes)
            f.flush()
            os.fsync(f.fileno())
        if old_bytes is not None:
            shutil.copymode(path, tmp_name)
        os.replace(tmp_name, path)
    except BaseException:
        with contextlib.suppress(FileNotFoundError):
            os.unlink(tmp_name)
        raise
    return True

##################################################################################################
# Tree walking
##################################################################################################

@dataclass(frozen=True)
class IgnoreFile:
    base: Path
    spec: GitIgnoreSpec

    def ignores(self, path: Path, is_dir: bool) -> bool:
        rel = path.relative_to(self.base).as_posix()
        if is_dir:
            rel += '/'
        return self.spec.match_file(rel)


def read_ignore_file(path: Path) -> IgnoreFile:
    with open(path, 'rt', encoding='utf-8') as f:
        lines = [line.rstrip('\n') for line in f]
    lines = [line for line in lines if line.strip() and not line.startswith('#')]
    return IgnoreFile(path.parent, GitIgnoreSpec.from_lines(lines))


WalkErrorHandler = Callable[[Path, OSError], None]


def walk_files(root: Path, use_gitignore: bool = True,
               on_error: WalkErrorHandler | None = None) -> Generator[Path, None, None]:
    """
    Yields the regular files below ``root`` in lexical order.

    ``.git`` directories and symlinks are skipped. With ``use_gitignore`` every
    ``.gitignore`` met on the way prunes the paths it ignores below its directory.
    Unreadable directories are passed to ``on_error`` and the walk goes on.
    """
    assert isinstance(root, Path), f"Expected Path, got {type(root)}"

    def go(directory: Path, ignore_files: List[IgnoreFile]) -> Generator[Path, None, None]:
        gitignore = directory / '.gitignore'
        if use_gitignore and gitignore.is_file():
            try:
                ignore_files = ignore_files + [read_ignore_file(gitignore)]
            except (OSError, UnicodeDecodeError, ValueError) as e:
                logging.warning(f"Ignoring unreadable {gitignore}: {e}")

        try:
            with os.scandir(directory) as it:
                entries = sorted(it, key=lambda entry: entry.name)
        except OSError as e:
            if on_error is None:
                raise
            on_error(directory, e)
            return

        for entry in entries:
            path = directory / entry.name
            if entry.name == '.git' or entry.is_symlink():
                logging.debug(f"Skipping {path}")
                continue
            is_dir = entry.is_dir(follow_symlinks=False)
            if any(ignore_file.ignores(path, is_dir) for ignore_file in ignore_files):
                logging.debug(f"Skipping {path} due to .gitignore")
                continue
            if is_dir:
                yield from go(path, ignore_files)
            elif entry.is_file(follow_symlinks=False):
                yield path

    yield from go(root, [])
