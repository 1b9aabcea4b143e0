import os
import signal
import sys
import time

import pytest

from headerscan.config import load_config
from headerscan.results import Action, Status
from headerscan.tasks import scan as scan_task
from headerscan.tasks.scan import (
    EXIT_CONFIG_ERROR, EXIT_INTERRUPTED, EXIT_OK, EXIT_VIOLATIONS, exit_code, scan, scan_main,
)

CONFIG = '''
inlineHeader = "Copyright {inceptionYear} {copyrightOwner}"
excludes = ["licenserc.toml"]

[properties]
copyrightOwner = "Acme"
inceptionYear = 2022
'''


def _statuses(report):
    return {result.path: result.status for result in report}


def test_scenario_check_then_fix(scenario, capsys):
    assert scan_main(str(scenario)) == EXIT_VIOLATIONS
    assert capsys.readouterr().out == "Cargo.toml\tviolating\n"

    assert scan_main(str(scenario), fix=True) == EXIT_OK
    assert capsys.readouterr().out == "Cargo.toml\tfixed\n"
    assert (scenario / "Cargo.toml").read_text() == "# Copyright 2022 Acme\n\n[package]\nname = \"demo\"\n"
    assert (scenario / "settings.toml").read_text() == "debug = true\n"

    assert scan_main(str(scenario), verbose=True) == EXIT_OK
    assert capsys.readouterr().out == (
        "Cargo.toml\tcompliant\n"
        "licenserc.toml\texcluded\n"
        "settings.toml\texcluded\n"
    )


def test_fix_is_idempotent(scenario):
    config = load_config(scenario)
    first = scan(config, fix=True)
    assert [r.action for r in first if r.path == "Cargo.toml"] == [Action.INSERTED]
    fixed = (scenario / "Cargo.toml").read_bytes()

    second = scan(config, fix=True)
    assert _statuses(second)["Cargo.toml"] is Status.COMPLIANT
    assert (scenario / "Cargo.toml").read_bytes() == fixed


def test_outdated_header_is_replaced(tree):
    root = tree({"licenserc.toml": CONFIG, "src/main.rs": "// Copyright 2019 Someone\n\nfn main() {}\n"})
    report = scan(load_config(root), fix=True)
    [result] = [r for r in report if r.path == "src/main.rs"]
    assert result.action is Action.REPLACED
    assert (root / "src/main.rs").read_text() == "// Copyright 2022 Acme\n\nfn main() {}\n"


def test_later_years_are_compliant(tree):
    root = tree({"licenserc.toml": CONFIG, "old.rs": "// Copyright 2020-2024 Acme\n\nfn f() {}\n"})
    assert _statuses(scan(load_config(root)))["old.rs"] is Status.COMPLIANT


def test_shebang_is_preserved(tree):
    root = tree({"licenserc.toml": CONFIG, "tool.sh": "#!/bin/sh\necho hi\n"})
    scan(load_config(root), fix=True)
    assert (root / "tool.sh").read_text() == "#!/bin/sh\n# Copyright 2022 Acme\n\necho hi\n"


def test_unreadable_file_does_not_stop_the_run(tree, monkeypatch, capsys):
    root = tree({"licenserc.toml": CONFIG, "a.rs": "", "b.rs": "", "c.rs": ""})
    real_read = scan_task.read_text_file

    def read(path):
        if path.name == "b.rs":
            raise PermissionError(13, "Permission denied", str(path))
        return real_read(path)

    monkeypatch.setattr(scan_task, "read_text_file", read)
    assert scan_main(str(root), fix=True) == EXIT_VIOLATIONS
    assert capsys.readouterr().out == (
        "a.rs\tfixed\n"
        "b.rs\terror:Permission denied\n"
        "c.rs\tfixed\n"
    )
    assert (root / "b.rs").read_text() == ""


def test_per_file_errors(tree):
    root = tree({
        "licenserc.toml": CONFIG,
        "notes.unknownext": "hello\n",
        "latin1.rs": b"// caf\xe9\n",
    })
    report = scan(load_config(root), fix=True)
    labels = {result.path: result.label for result in report}
    assert labels["notes.unknownext"] == "error:unsupported language '.unknownext'"
    assert labels["latin1.rs"] == "error:not UTF-8 text"
    assert (root / "latin1.rs").read_bytes() == b"// caf\xe9\n"
    assert exit_code(report) == EXIT_VIOLATIONS


def test_bounded_pool_processes_every_file(tree):
    files = {f"src/f{i:02}.rs": "fn f() {}\n" for i in range(25)}
    root = tree({"licenserc.toml": CONFIG, **files})
    report = scan(load_config(root), fix=True, jobs=1)
    assert [r.path for r in report if r.status is Status.FIXED] == sorted(files)
    assert not report.interrupted


def test_interrupt_stops_enqueuing(tree, monkeypatch, capsys):
    root = tree({"licenserc.toml": CONFIG, "a.rs": "", "b.rs": ""})

    def walk(root, use_gitignore=True, on_error=None):
        yield root / "a.rs"
        raise KeyboardInterrupt

    monkeypatch.setattr(scan_task, "walk_files", walk)
    assert scan_main(str(root)) == EXIT_INTERRUPTED
    assert capsys.readouterr().out == "a.rs\tviolating\n-\tinterrupted\n"


def test_every_submitted_file_is_reported_after_interrupt(tree, monkeypatch):
    files = {f"f{i:02}.rs": "" for i in range(12)}
    root = tree({"licenserc.toml": CONFIG, **files})

    def walk(root, use_gitignore=True, on_error=None):
        for name in sorted(files):
            yield root / name
        raise KeyboardInterrupt

    monkeypatch.setattr(scan_task, "walk_files", walk)
    report = scan(load_config(root), jobs=1)
    assert report.interrupted
    assert [r.path for r in report] == sorted(files)


@pytest.mark.skipif(sys.platform == "win32", reason="SIGTERM cannot be handled on Windows")
def test_sigterm_stops_enqueuing(tree, monkeypatch):
    root = tree({"licenserc.toml": CONFIG, "a.rs": "", "b.rs": ""})
    previous = signal.getsignal(signal.SIGTERM)

    def walk(root, use_gitignore=True, on_error=None):
        yield root / "a.rs"
        os.kill(os.getpid(), signal.SIGTERM)
        time.sleep(0.05)
        yield root / "b.rs"

    monkeypatch.setattr(scan_task, "walk_files", walk)
    report = scan(load_config(root))
    assert report.interrupted
    assert list(_statuses(report)) == ["a.rs"]
    assert exit_code(report) == EXIT_INTERRUPTED
    assert signal.getsignal(signal.SIGTERM) == previous


def test_timeout_stops_enqueuing(tree, monkeypatch):
    root = tree({"licenserc.toml": CONFIG, "a.rs": "", "b.rs": ""})

    def walk(root, use_gitignore=True, on_error=None):
        yield root / "a.rs"
        time.sleep(0.05)
        yield root / "b.rs"

    monkeypatch.setattr(scan_task, "walk_files", walk)
    report = scan(load_config(root), timeout=0.01)
    assert report.interrupted
    assert "b.rs" not in _statuses(report)
    assert exit_code(report) == EXIT_INTERRUPTED


def test_config_error_exit_code(tmp_path, capsys):
    assert scan_main(str(tmp_path)) == EXIT_CONFIG_ERROR
    assert "Configuration error" in capsys.readouterr().err


@pytest.mark.parametrize("fix, expected", [(False, "Scan failed"), (True, "Scan passed")])
def test_pretty_report(scenario, capsys, fix, expected):
    scan_main(str(scenario), fix=fix, fmt="pretty")
    assert expected in capsys.readouterr().out
