from pathlib import Path
from typing import Any
from unittest.mock import MagicMock, patch

import pytest

from coreason_filebox.exceptions import EntryNotFoundError, StorageError, WrongKindError
from coreason_filebox.models import EntryKind
from coreason_filebox.walker import TreeWalker


@pytest.fixture
def walker() -> TreeWalker:
    return TreeWalker()


@pytest.fixture
def tree(tmp_path: Path) -> Path:
    """
    tree/
        top.txt (3 bytes)
        a/
            one.txt (5 bytes)
            b/
                two.txt (7 bytes)
                c/
        a-b/
            three.txt (11 bytes)
    """
    top = tmp_path / "tree"
    (top / "a" / "b" / "c").mkdir(parents=True)
    (top / "a-b").mkdir()
    (top / "top.txt").write_bytes(b"123")
    (top / "a" / "one.txt").write_bytes(b"12345")
    (top / "a" / "b" / "two.txt").write_bytes(b"1234567")
    (top / "a-b" / "three.txt").write_bytes(b"12345678901")
    return top


def test_list_names(walker: TreeWalker, tree: Path) -> None:
    assert sorted(walker.list_names(tree)) == ["a", "a-b", "top.txt"]


def test_list_children(walker: TreeWalker, tree: Path) -> None:
    children = {entry.name: entry for entry in walker.list_children(tree)}

    assert set(children) == {"a", "a-b", "top.txt"}
    assert children["top.txt"].type is EntryKind.FILE
    assert children["top.txt"].size == 3
    assert children["a"].type is EntryKind.DIRECTORY
    assert children["a"].size == 0


def test_list_children_empty(walker: TreeWalker, tmp_path: Path) -> None:
    assert walker.list_children(tmp_path) == []


def test_list_children_missing(walker: TreeWalker, tmp_path: Path) -> None:
    with pytest.raises(EntryNotFoundError, match="Path does not exist"):
        walker.list_children(tmp_path / "missing")


def test_list_children_of_file(walker: TreeWalker, tree: Path) -> None:
    with pytest.raises(WrongKindError, match="Path is not a directory"):
        walker.list_children(tree / "top.txt")


def test_list_children_includes_dangling_symlink(walker: TreeWalker, tmp_path: Path) -> None:
    (tmp_path / "dangling").symlink_to(tmp_path / "nowhere")

    children = walker.list_children(tmp_path)
    assert [entry.name for entry in children] == ["dangling"]
    assert children[0].type is EntryKind.FILE


def test_list_children_describes_looping_symlink(walker: TreeWalker, tmp_path: Path) -> None:
    (tmp_path / "loop").symlink_to(tmp_path / "loop")
    (tmp_path / "ok.txt").write_bytes(b"ok")

    children = {entry.name: entry for entry in walker.list_children(tmp_path)}

    assert set(children) == {"loop", "ok.txt"}
    assert children["loop"].type is EntryKind.FILE
    assert children["ok.txt"].size == 2


def _fake_entry(path: Path, *results: Any) -> MagicMock:
    entry = MagicMock(path=str(path))
    entry.name = path.name
    entry.stat.side_effect = list(results)
    return entry


def test_list_children_falls_back_to_lstat(walker: TreeWalker, tmp_path: Path) -> None:
    target = tmp_path / "guarded"
    target.write_bytes(b"1234")
    entry = _fake_entry(target, PermissionError("denied"), target.lstat())

    with patch.object(walker, "_scandir", return_value=iter([entry])):
        children = walker.list_children(tmp_path)

    assert [child.name for child in children] == ["guarded"]
    assert children[0].size == 4


def test_list_children_skips_uninspectable_entry(
    walker: TreeWalker, tmp_path: Path, log_records: list[dict[str, Any]]
) -> None:
    good = tmp_path / "good.txt"
    good.write_bytes(b"good")
    entries = [
        _fake_entry(tmp_path / "locked", PermissionError("denied"), PermissionError("denied")),
        _fake_entry(tmp_path / "vanished", PermissionError("denied"), FileNotFoundError("gone")),
        _fake_entry(good, good.stat()),
    ]

    with patch.object(walker, "_scandir", return_value=iter(entries)):
        children = walker.list_children(tmp_path)

    assert [child.name for child in children] == ["good.txt"]
    warnings = [r["message"] for r in log_records if r["level"].name == "WARNING"]
    assert any("locked" in message for message in warnings)
    assert not any("vanished" in message for message in warnings)


def test_delete_subtree(walker: TreeWalker, tree: Path) -> None:
    stats = walker.delete_subtree(tree / "a")

    assert stats.deleted_files == 2
    assert stats.deleted_directories == 3
    assert stats.freed_space == 12
    assert not (tree / "a").exists()
    # Sibling sharing a name prefix is untouched.
    assert (tree / "a-b" / "three.txt").exists()


def test_delete_subtree_whole_tree(walker: TreeWalker, tree: Path) -> None:
    stats = walker.delete_subtree(tree)

    assert stats.deleted_files == 4
    assert stats.deleted_directories == 5
    assert stats.freed_space == 26
    assert not tree.exists()


def test_delete_subtree_skips_failures(walker: TreeWalker, tree: Path, log_records: list[dict[str, Any]]) -> None:
    original_unlink = Path.unlink

    def flaky_unlink(self: Path, missing_ok: bool = False) -> None:
        if self.name == "two.txt":
            raise PermissionError("locked")
        original_unlink(self, missing_ok=missing_ok)

    with patch.object(Path, "unlink", flaky_unlink):
        stats = walker.delete_subtree(tree / "a")

    # two.txt survives, so b/ and a/ cannot be removed; only c/ and one.txt go.
    assert stats.deleted_files == 1
    assert stats.deleted_directories == 1
    assert stats.freed_space == 5
    assert (tree / "a" / "b" / "two.txt").exists()
    assert not (tree / "a" / "one.txt").exists()
    assert not (tree / "a" / "b" / "c").exists()
    assert any("two.txt" in r["message"] for r in log_records if r["level"].name == "WARNING")


def test_delete_subtree_tolerates_vanished_entries(walker: TreeWalker, tree: Path) -> None:
    original = walker._enumerate

    def enumerate_with_ghost(top: Path) -> list[Path]:
        return [*original(top), top / "ghost.txt"]

    with patch.object(walker, "_enumerate", enumerate_with_ghost):
        stats = walker.delete_subtree(tree / "a")

    assert stats.deleted_files == 2
    assert stats.deleted_directories == 3


def test_delete_subtree_removes_symlink_not_target(walker: TreeWalker, tree: Path, tmp_path: Path) -> None:
    outside = tmp_path / "outside"
    outside.mkdir()
    (outside / "keep.txt").write_bytes(b"keep")
    (tree / "a" / "link").symlink_to(outside, target_is_directory=True)

    walker.delete_subtree(tree / "a")

    assert not (tree / "a").exists()
    assert (outside / "keep.txt").exists()


def test_clean_all_keeps_root(walker: TreeWalker, tmp_path: Path) -> None:
    root = tmp_path / "root"
    (root / "sub").mkdir(parents=True)
    for name in ("one.txt", "two.txt", "three.txt"):
        (root / name).write_bytes(b"data")
    (root / "sub" / "four.txt").write_bytes(b"data")

    stats = walker.clean_all(root)

    assert stats.deleted_files == 4
    assert stats.deleted_directories == 1
    assert stats.freed_space == 16
    assert root.is_dir()
    assert list(root.iterdir()) == []


def test_clean_all_empty_root(walker: TreeWalker, tmp_path: Path) -> None:
    stats = walker.clean_all(tmp_path)

    assert stats.deleted_files == 0
    assert stats.deleted_directories == 0
    assert stats.freed_space == 0
    assert tmp_path.is_dir()


def test_clean_all_unreadable_root(walker: TreeWalker, tmp_path: Path) -> None:
    with patch("coreason_filebox.walker.os.listdir", side_effect=PermissionError("denied")):
        with pytest.raises(StorageError):
            walker.clean_all(tmp_path)
