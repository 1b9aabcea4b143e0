from __future__ import annotations
from concurrent.futures import ThreadPoolExecutor, Future, FIRST_COMPLETED, wait
from typing import Any, Generator, List, Set
from pathlib import Path
import contextlib
import logging
import os
import signal
import sys
import threading
import time

from headerscan.config import Config, load_config
from headerscan.detection import apply_header, is_compliant
from headerscan.errors import ConfigError, RenderError
from headerscan.io import read_text_file, walk_files, write_text_file
from headerscan.matching import covers
from headerscan.messages import error, info, success, warning
from headerscan.rendering import render
from headerscan.results import ScanReport, ScanResult, Status
from headerscan.styles import language_of, style_for

EXIT_OK = 0
EXIT_VIOLATIONS = 1
EXIT_CONFIG_ERROR = 2
EXIT_INTERRUPTED = 3


def _reason(e: BaseException) -> str:
    if isinstance(e, UnicodeDecodeError):
        return "not UTF-8 text"
    if isinstance(e, OSError) and e.strerror:
        return e.strerror
    return ' '.join(str(e).split()) or type(e).__name__


def check_file(path: Path, rel: str, config: Config, fix: bool = False) -> ScanResult:
    """
    Checks one covered file and, in fix mode, repairs it.

    Render, read and write failures are returned as an errored result rather than
    raised, so one bad file never stops the others.
    """
    language = language_of(rel, config.mapping)
    try:
        header = render(config.template, config.properties, language, config.mapping)
    except RenderError as e:
        return ScanResult.failed(rel, _reason(e))
    style = style_for(language, config.mapping)

    try:
        content = read_text_file(path)
    except (OSError, UnicodeDecodeError) as e:
        return ScanResult.failed(rel, _reason(e))

    if is_compliant(content, header, style.preamble, config.years):
        return ScanResult(rel, covered=True, compliant=True)
    if not fix:
        return ScanResult(rel, covered=True, compliant=False)

    fixed, action = apply_header(content, header, style, config.keywords, config.years)
    try:
        write_text_file(path, fixed)
    except OSError as e:
        return ScanResult.failed(rel, f"write failed: {_reason(e)}")

    if not is_compliant(fixed, header, style.preamble, config.years):
        return ScanResult(rel, covered=True, compliant=False, action=action,
                          error="header still missing after fix")
    return ScanResult(rel, covered=True, compliant=True, action=action)


@contextlib.contextmanager
def _stop_on_sigterm(stop: threading.Event) -> Generator[None, None, None]:
    """
    Turns SIGTERM into a request to stop enqueuing files while the block runs.
    Signal handlers can only be installed from the main thread.
    """
    if threading.current_thread() is not threading.main_thread():
        yield
        return

    def handler(signum: int, frame: Any) -> None:
        stop.set()

    previous = signal.signal(signal.SIGTERM, handler)
    try:
        yield
    finally:
        signal.signal(signal.SIGTERM, previous if previous is not None else signal.SIG_DFL)


def scan(config: Config, fix: bool = False, jobs: int | None = None,
         timeout: float | None = None) -> ScanReport:
    """
    Walks ``config.root`` and checks every covered file on a bounded worker pool.

    The walk itself stays on the calling thread. At most ``2 * jobs`` files are in
    flight, so a timeout, Ctrl-C or SIGTERM stops enqueuing quickly; files already
    submitted are finished and reported, and the report is marked as interrupted.
    """
    report = ScanReport()
    jobs = max(1, jobs or os.cpu_count() or 1)
    deadline = time.monotonic() + timeout if timeout else None
    root = config.root
    stop = threading.Event()

    def on_walk_error(path: Path, e: OSError) -> None:
        rel = path.relative_to(root).as_posix() or '.'
        report.append(ScanResult.failed(rel, _reason(e)))

    submitted: List[Future[ScanResult]] = []
    pending: Set[Future[ScanResult]] = set()
    with _stop_on_sigterm(stop), ThreadPoolExecutor(max_workers=jobs, thread_name_prefix='headerscan') as pool:
        try:
            for path in walk_files(root, config.use_gitignore, on_walk_error):
                if stop.is_set():
                    logging.warning("Terminated, finishing files in progress")
                    report.interrupted = True
                    break
                if deadline is not None and time.monotonic() > deadline:
                    logging.warning(f"Timeout of {timeout}s reached, not starting new files")
                    report.interrupted = True
                    break

                rel = path.relative_to(root).as_posix()
                if not covers(rel, config.rules):
                    report.append(ScanResult.excluded(rel))
                    continue

                future = pool.submit(check_file, path, rel, config, fix)
                submitted.append(future)
                pending.add(future)
                if len(pending) >= 2 * jobs:
                    _, pending = wait(pending, return_when=FIRST_COMPLETED)
        except KeyboardInterrupt:
            logging.warning("Interrupted, finishing files in progress")
            report.interrupted = True

        wait(submitted)

    report.extend([future.result() for future in submitted])
    return report


def print_report(report: ScanReport, fmt: str = 'plain', verbose: bool = False) -> None:
    if fmt == 'plain':
        for result in report:
            if result.status is Status.EXCLUDED and not verbose:
                continue
            print(f"{result.path}\t{result.label}")
        if report.interrupted:
            print("-\tinterrupted")
        return

    for result in report:
        match result.status:
            case Status.EXCLUDED:
                if verbose: info(f"{result.path} > excluded")
            case Status.COMPLIANT:
                if verbose: success(f"{result.path} > compliant")
            case Status.FIXED:
                success(f"{result.path} > header {result.action.value}")
            case Status.VIOLATING:
                error(f"{result.path} > missing or outdated license header")
            case Status.ERROR:
                error(f"{result.path} > {result.error}")

    counts = report.counts()
    summary = ', '.join(f"{counts[status]} {status.value}" for status in Status if counts[status])
    if report.interrupted:
        warning(f"Scan interrupted: {summary or 'no files processed'}")
    elif report.failed:
        error(f"Scan failed: {summary}")
    else:
        success(f"Scan passed: {summary or 'no files'}")


def exit_code(report: ScanReport) -> int:
    if report.interrupted:
        return EXIT_INTERRUPTED
    if report.failed:
        return EXIT_VIOLATIONS
    return EXIT_OK


def scan_main(root: str = '.', config_path: str | None = None, fix: bool = False,
              fmt: str = 'plain', verbose: bool = False, jobs: int | None = None,
              timeout: float | None = None) -> int:
    """
    Runs a scan and prints its report. Returns the process exit code.
    """
    try:
        config = load_config(Path(root), Path(config_path) if config_path else None)
    except ConfigError as e:
        error(f"Configuration error: {e}", stream=sys.stderr)
        return EXIT_CONFIG_ERROR

    if fix:
        logging.debug(f"Fix mode enabled for {config.root}")
    report = scan(config, fix=fix, jobs=jobs, timeout=timeout)
    print_report(report, fmt=fmt, verbose=verbose)
    return exit_code(report)
