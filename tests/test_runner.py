import os
import stat
from pathlib import Path

import pytest

from v25clean.cli import main
from v25clean.models import FileAction
from v25clean.rules import CLEANUP_DONE
from v25clean.runner import RunGuard, clean_directory, clean_file, list_files


def _write(path, text, encoding="utf-8"):
    path.write_bytes(text.encode(encoding))
    return path


@pytest.fixture
def logdir(tmp_path, osc_lines):
    _write(tmp_path / "noext", "a\tb\n1\t2\n")
    _write(tmp_path / "partial.dat", "a\tb\tc\n1\t2\t3\n4\t5\n\n")
    _write(tmp_path / "clean.dat", "a\tb\n1\t2\n3\t4\n")
    _write(tmp_path / "short.dat", "a\tb\n")
    _write(tmp_path / "notes.txt", "anything\n\n\n")
    _write(tmp_path / "run.osc", "\n".join(osc_lines) + "\n")
    (tmp_path / "subdir").mkdir()
    return tmp_path


def test_clean_directory(logdir, policy):
    clean_before = (logdir / "clean.dat").read_bytes()

    summary = clean_directory(logdir, policy)

    actions = {Path(r.path).name: r.action for r in summary.files}
    assert actions == {
        "clean.dat": FileAction.UNCHANGED,
        "noext": FileAction.DELETED,
        "notes.txt": FileAction.SKIPPED,
        "partial.dat": FileAction.REWRITTEN,
        "run.osc": FileAction.REWRITTEN,
        "short.dat": FileAction.DELETED,
    }
    assert summary.counts() == {"deleted": 2, "skipped": 1, "unchanged": 1, "rewritten": 2}

    assert not (logdir / "noext").exists()
    assert not (logdir / "short.dat").exists()
    assert (logdir / "partial.dat").read_text() == "a\tb\tc\n1\t2\t3\n"
    assert (logdir / "clean.dat").read_bytes() == clean_before
    assert (logdir / "notes.txt").read_text() == "anything\n\n\n"
    assert (logdir / "subdir").is_dir()
    assert (logdir / CLEANUP_DONE).is_file()

    osc = (logdir / "run.osc").read_text().split("\n")
    assert osc[4] == "\tDateTime\tTime\tValue"
    assert osc[7] == "\t21.06.24 14:03:55.12\t0.2\t1.40"
    assert osc[-1] == ""


def test_guard_skips_cleaned_directory(logdir, policy):
    (logdir / CLEANUP_DONE).touch()
    summary = clean_directory(logdir, policy, guard=RunGuard(logdir))
    assert summary.already_cleaned
    assert summary.files == []
    assert (logdir / "noext").exists()


def test_force_runs_again_without_changes(logdir, policy):
    clean_directory(logdir, policy)
    osc_before = (logdir / "run.osc").read_bytes()

    summary = clean_directory(logdir, policy, guard=RunGuard(logdir, force=True))

    assert not summary.already_cleaned
    assert {r.action for r in summary.files} == {FileAction.UNCHANGED, FileAction.SKIPPED}
    assert (logdir / "run.osc").read_bytes() == osc_before


def test_list_files_excludes_marker(logdir):
    (logdir / CLEANUP_DONE).touch()
    names = [p.name for p in list_files(logdir)]
    assert CLEANUP_DONE not in names
    assert "subdir" not in names
    assert names == sorted(names)


def test_crlf_file_left_untouched(tmp_path, policy):
    path = _write(tmp_path / "x.dat", "h\tv\r\n1\t2\r\n")
    report = clean_file(path, policy)
    assert report.action is FileAction.UNCHANGED
    assert path.read_bytes() == b"h\tv\r\n1\t2\r\n"


def test_rewrite_keeps_encoding(tmp_path, policy):
    text = (
        "Messstelle\tOrt\n"
        "1\tMünchen Großhadern Süd\n"
        "2\tKöln Rheinauhafen Nördlich\n"
        "3\tx\n"
    )
    path = _write(tmp_path / "x.dat", text, encoding="latin-1")
    report = clean_file(path, policy)
    assert report.action is FileAction.REWRITTEN
    assert path.read_bytes() == text.rsplit("3\tx\n", 1)[0].encode("latin-1")


def test_io_errors_propagate(tmp_path, policy):
    with pytest.raises(FileNotFoundError):
        clean_file(tmp_path / "missing.dat", policy)
    with pytest.raises(FileNotFoundError):
        clean_directory(tmp_path / "missing", policy)


def test_osc_with_tab_in_first_line_survives_rerun(tmp_path, policy, osc_lines):
    osc_lines[0] = "21.06.24 14:03:55.12\t"
    path = _write(tmp_path / "run.osc", "\n".join(osc_lines) + "\n")

    assert clean_file(path, policy).action is FileAction.REWRITTEN
    rewritten = path.read_bytes()

    summary = clean_directory(tmp_path, policy, guard=RunGuard(tmp_path, force=True))
    assert summary.files[0].action is FileAction.UNCHANGED
    assert path.read_bytes() == rewritten


@pytest.mark.skipif(os.name == "nt", reason="posix file modes")
def test_rewrite_keeps_file_mode(tmp_path, policy):
    path = _write(tmp_path / "x.dat", "h\tv\n1\t200\n2\t3\n")
    os.chmod(path, 0o600)

    assert clean_file(path, policy).action is FileAction.REWRITTEN
    assert stat.S_IMODE(path.stat().st_mode) == 0o600


def test_failed_write_aborts_run_without_marker(logdir, policy, monkeypatch):
    def fail(*args, **kwargs):
        raise OSError("disk full")

    monkeypatch.setattr("v25clean.runner.write_lines", fail)
    with pytest.raises(OSError):
        clean_directory(logdir, policy)
    assert not (logdir / CLEANUP_DONE).exists()


def test_failed_replace_keeps_original(tmp_path, policy, monkeypatch):
    original = b"h\tv\n1\t200\n2\t3\n"
    path = tmp_path / "x.dat"
    path.write_bytes(original)

    def fail(self, target):
        raise PermissionError("read-only directory")

    monkeypatch.setattr(Path, "replace", fail)
    with pytest.raises(PermissionError):
        clean_file(path, policy)

    assert path.read_bytes() == original
    assert sorted(p.name for p in tmp_path.iterdir()) == ["x.dat"]


def test_cli(logdir, tmp_path_factory):
    cfg = tmp_path_factory.mktemp("cfg") / "cfg.yml"
    cfg.write_text("DAT:\n  min_n_lines: 2\nOSC:\n  min_n_lines: 6\n", encoding="utf-8")

    assert main(["-d", str(logdir), "-c", str(cfg), "--verbose"]) == 0
    assert (logdir / CLEANUP_DONE).is_file()
    assert not (logdir / "noext").exists()

    assert main(["-d", str(logdir / "missing"), "-c", str(cfg)]) == 1
    assert main(["-d", str(logdir), "-c", str(logdir / "nope.yml")]) == 1
