"""Tests for link-or-copy placement."""

import os as _os
import pathlib as _pathlib

import pytest as _pytest

import skillcast.errors as errors
import skillcast.skills.linking as linking


@_pytest.fixture
def source_dir(tmp_path: _pathlib.Path) -> _pathlib.Path:
    """A small directory tree to place."""
    src = tmp_path / "src" / "pdf"
    (src / "scripts").mkdir(parents=True)
    (src / "SKILL.md").write_text("# pdf\n")
    (src / "scripts" / "run.sh").write_text("echo hi\n")
    return src


def _refuse_symlink(*args, **kwargs) -> None:
    raise OSError(1, "Operation not permitted")


class TestPlace:
    """Tests for place()."""

    def test_links_by_default(self, tmp_path: _pathlib.Path, source_dir: _pathlib.Path) -> None:
        """A link is created when the host allows it."""
        dest = tmp_path / "dest"

        method = linking.place(source_dir, dest)

        assert method is linking.PlaceMethod.LINK
        assert dest.is_symlink()
        assert dest.resolve() == source_dir.resolve()

    def test_copy_when_requested(self, tmp_path: _pathlib.Path, source_dir: _pathlib.Path) -> None:
        """copy=True skips the link attempt."""
        dest = tmp_path / "dest"

        method = linking.place(source_dir, dest, copy=True)

        assert method is linking.PlaceMethod.COPY
        assert not dest.is_symlink()
        assert (dest / "scripts" / "run.sh").read_text() == "echo hi\n"

    def test_falls_back_to_copy(
        self,
        tmp_path: _pathlib.Path,
        source_dir: _pathlib.Path,
        monkeypatch: _pytest.MonkeyPatch,
    ) -> None:
        """A refused link becomes a full copy with identical content."""
        monkeypatch.setattr(_os, "symlink", _refuse_symlink)
        dest = tmp_path / "dest"

        method = linking.place(source_dir, dest)

        assert method is linking.PlaceMethod.COPY
        assert sorted(p.relative_to(dest).as_posix() for p in dest.rglob("*")) == [
            "SKILL.md",
            "scripts",
            "scripts/run.sh",
        ]
        assert (dest / "SKILL.md").read_bytes() == (source_dir / "SKILL.md").read_bytes()
        assert (dest / "scripts" / "run.sh").read_bytes() == (
            source_dir / "scripts" / "run.sh"
        ).read_bytes()

    def test_replaces_existing_link(
        self, tmp_path: _pathlib.Path, source_dir: _pathlib.Path
    ) -> None:
        """An existing entry at the destination is replaced."""
        other = tmp_path / "other"
        other.mkdir()
        dest = tmp_path / "dest"
        _os.symlink(other, dest, target_is_directory=True)

        linking.place(source_dir, dest)

        assert dest.resolve() == source_dir.resolve()
        assert other.is_dir()


class TestCreateLink:
    """Tests for create_link()."""

    def test_refusal_raises_link_unsupported(
        self,
        tmp_path: _pathlib.Path,
        source_dir: _pathlib.Path,
        monkeypatch: _pytest.MonkeyPatch,
    ) -> None:
        """Host refusals surface as LinkUnsupportedError."""
        monkeypatch.setattr(_os, "symlink", _refuse_symlink)
        with _pytest.raises(errors.LinkUnsupportedError):
            linking.create_link(source_dir, tmp_path / "dest")

    def test_relative_source_is_made_absolute(
        self,
        tmp_path: _pathlib.Path,
        source_dir: _pathlib.Path,
        monkeypatch: _pytest.MonkeyPatch,
    ) -> None:
        """The link stores an absolute target even for a relative source."""
        monkeypatch.chdir(tmp_path)
        dest = tmp_path / "links" / "pdf"
        dest.parent.mkdir()

        linking.create_link(_pathlib.Path("src") / "pdf", dest)

        assert _pathlib.Path(_os.readlink(dest)).is_absolute()
        assert (dest / "SKILL.md").is_file()


class TestReplaceWithLink:
    """Tests for replace_with_link()."""

    def test_swaps_existing_link(self, tmp_path: _pathlib.Path, source_dir: _pathlib.Path) -> None:
        """An existing link is replaced and no staging entry is left."""
        old = tmp_path / "old"
        old.mkdir()
        dest = tmp_path / "links" / "pdf"
        dest.parent.mkdir()
        _os.symlink(old, dest, target_is_directory=True)

        linking.replace_with_link(source_dir, dest)

        assert dest.resolve() == source_dir.resolve()
        assert [p.name for p in dest.parent.iterdir()] == ["pdf"]
        assert old.is_dir()

    def test_refusal_keeps_old_link(
        self,
        tmp_path: _pathlib.Path,
        source_dir: _pathlib.Path,
        monkeypatch: _pytest.MonkeyPatch,
    ) -> None:
        """When the host refuses the new link, the old one stays in place."""
        old = tmp_path / "old"
        old.mkdir()
        dest = tmp_path / "pdf"
        _os.symlink(old, dest, target_is_directory=True)
        monkeypatch.setattr(_os, "symlink", _refuse_symlink)

        with _pytest.raises(errors.LinkUnsupportedError):
            linking.replace_with_link(source_dir, dest)

        assert dest.resolve() == old.resolve()

class TestClearDestination:
    """Tests for clear_destination()."""

    def test_unlinks_without_touching_target(
        self, tmp_path: _pathlib.Path, source_dir: _pathlib.Path
    ) -> None:
        """Removing a link leaves the target in place."""
        dest = tmp_path / "dest"
        _os.symlink(source_dir, dest, target_is_directory=True)

        linking.clear_destination(dest)

        assert not dest.exists() and not dest.is_symlink()
        assert (source_dir / "SKILL.md").is_file()

    def test_removes_directory_tree(self, tmp_path: _pathlib.Path) -> None:
        """Real directories are deleted recursively."""
        dest = tmp_path / "tree"
        (dest / "a" / "b").mkdir(parents=True)

        linking.clear_destination(dest)

        assert not dest.exists()

    def test_dangling_link(self, tmp_path: _pathlib.Path) -> None:
        """A link whose target is gone is still removed."""
        dest = tmp_path / "dangling"
        _os.symlink(tmp_path / "missing", dest)

        linking.clear_destination(dest)

        assert not dest.is_symlink()

    def test_missing_is_noop(self, tmp_path: _pathlib.Path) -> None:
        """Nothing at the destination is fine."""
        linking.clear_destination(tmp_path / "nothing")

