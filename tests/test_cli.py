import json
from pathlib import Path

import pytest
from conftest import ArtifactStore, sri, write_json

from lockpatch.cli import EXIT_FAILURE, EXIT_OK, EXIT_USAGE, main


def _lock(path: Path) -> Path:
    return write_json(
        path,
        {
            "name": "app",
            "lockfileVersion": 1,
            "dependencies": {"left-pad": {"version": "1.3.0", "integrity": "sha512-OLD"}},
        },
    )


@pytest.mark.parametrize("argv", [[], ["snapshot.json", "extra.json"], ["--root", "x"]])
def test_wrong_argument_count_prints_usage_and_touches_nothing(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
    argv: list[str],
) -> None:
    lock = _lock(tmp_path / "package-lock.json")
    before = lock.read_bytes()
    monkeypatch.chdir(tmp_path)

    assert main(argv) == EXIT_USAGE

    captured = capsys.readouterr()
    assert captured.out.startswith("Usage:")
    assert "lock-patcher [snapshot]" in captured.out
    assert lock.read_bytes() == before


def test_cli_rewrites_lockfiles_under_working_directory(
    tmp_path: Path,
    store: ArtifactStore,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    payload = store.add("left-pad", "1.3.0")
    snapshot_path = store.write_snapshot()
    project = tmp_path / "project"
    lock = _lock(project / "package-lock.json")
    monkeypatch.chdir(project)

    assert main([str(snapshot_path)]) == EXIT_OK

    rewritten = json.loads(lock.read_text(encoding="utf-8"))
    expected = sri("sha512", payload)
    assert rewritten["dependencies"]["left-pad"]["integrity"] == expected
    out = capsys.readouterr().out
    assert f"[lock-patcher] left-pad-1.3.0: sha512-OLD -> {expected}" in out
    assert "[lock-patcher] Patched integrity in" in out


def test_cli_missing_snapshot_exits_non_zero_and_logs_to_stderr(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    lock = _lock(tmp_path / "package-lock.json")
    before = lock.read_bytes()
    monkeypatch.chdir(tmp_path)

    assert main([str(tmp_path / "missing.json")]) == EXIT_FAILURE

    err = capsys.readouterr().err
    assert "[lock-patcher] Error:" in err
    assert "Snapshot file does not exist." in err
    assert lock.read_bytes() == before


def test_cli_malformed_lockfile_still_exits_zero(
    tmp_path: Path,
    store: ArtifactStore,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    store.add("left-pad", "1.3.0")
    snapshot_path = store.write_snapshot()
    project = tmp_path / "project"
    for name in ("a", "b", "c"):
        _lock(project / name / "package-lock.json")
    broken = project / "d" / "package-lock.json"
    broken.parent.mkdir(parents=True)
    broken.write_text("{", encoding="utf-8")
    monkeypatch.chdir(project)

    assert main([str(snapshot_path)]) == EXIT_OK

    err = capsys.readouterr().err
    assert "[lock-patcher] Could not load:" in err
    assert str(Path("d") / "package-lock.json") in err
