import json
from pathlib import Path

import pytest

from lockpatch.errors import IntegrityError, SnapshotError
from lockpatch.snapshot import load_snapshot, parse_snapshot


def test_load_snapshot_maps_name_and_version_to_path(tmp_path: Path) -> None:
    path = tmp_path / "snapshot.json"
    path.write_text(
        json.dumps({"react": {"18.2.0": "/nix/store/abc-react-18.2.0.tgz"}}),
        encoding="utf-8",
    )

    snapshot = load_snapshot(path)

    assert "react" in snapshot
    assert len(snapshot) == 1
    assert snapshot.resolve("react", "18.2.0") == Path("/nix/store/abc-react-18.2.0.tgz")


def test_load_snapshot_missing_file_is_fatal(tmp_path: Path) -> None:
    with pytest.raises(SnapshotError) as excinfo:
        load_snapshot(tmp_path / "missing.json")

    assert excinfo.value.context["path"].endswith("missing.json")


def test_load_snapshot_invalid_json_is_fatal(tmp_path: Path) -> None:
    path = tmp_path / "snapshot.json"
    path.write_text("{not json", encoding="utf-8")

    with pytest.raises(SnapshotError) as excinfo:
        load_snapshot(path)

    assert "Invalid snapshot JSON" in str(excinfo.value)


def test_load_snapshot_wrong_shape_reports_path(tmp_path: Path) -> None:
    path = tmp_path / "snapshot.json"
    path.write_text(json.dumps({"react": ["18.2.0"]}), encoding="utf-8")

    with pytest.raises(SnapshotError) as excinfo:
        load_snapshot(path)

    assert excinfo.value.context == {"path": str(path), "package": "react"}


@pytest.mark.parametrize(
    "raw",
    [
        "[]",
        json.dumps({"react": ["18.2.0"]}),
        json.dumps({"react": {"18.2.0": 42}}),
        json.dumps({"react": {"18.2.0": ""}}),
    ],
)
def test_parse_snapshot_rejects_wrong_shape(raw: str) -> None:
    with pytest.raises(SnapshotError):
        parse_snapshot(raw)


def test_snapshot_is_read_only() -> None:
    snapshot = parse_snapshot(json.dumps({"a": {"1.0.0": "/a.tgz"}}))

    with pytest.raises(TypeError):
        snapshot.packages["b"] = {}  # type: ignore[index]


def test_resolve_unknown_package_reports_context() -> None:
    snapshot = parse_snapshot(json.dumps({"a": {"1.0.0": "/a.tgz"}}))

    with pytest.raises(IntegrityError) as excinfo:
        snapshot.resolve("b", "1.0.0")

    assert excinfo.value.context["package"] == "b"
    assert excinfo.value.context["snapshot_entry"] == "null"


def test_resolve_unknown_version_reports_full_snapshot_entry() -> None:
    snapshot = parse_snapshot(json.dumps({"a": {"1.0.0": "/a.tgz"}}))

    with pytest.raises(IntegrityError) as excinfo:
        snapshot.resolve("a", "2.0.0")

    assert excinfo.value.context["version"] == "2.0.0"
    assert json.loads(excinfo.value.context["snapshot_entry"]) == {"1.0.0": "/a.tgz"}
