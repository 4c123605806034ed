"""Tests for source registration, refresh and removal."""

import os as _os
import pathlib as _pathlib

import pytest as _pytest

import skillcast.errors as errors
import skillcast.registry.sources as sources
import skillcast.registry.state as state
import skillcast.skills.activation as activation
import skillcast.skills.active as active

REPO_URL = "https://example.com/org/skills.git"


class TestNames:
    """Tests for origin classification and name derivation."""

    @_pytest.mark.parametrize(
        "target",
        ["https://github.com/o/r", "http://h/r", "git@github.com:o/r.git", "/srv/mirror/r.git"],
    )
    def test_remote_forms(self, target: str) -> None:
        """http*, git@ and *.git inputs are remote."""
        assert sources.is_remote_origin(target)

    def test_local_form(self) -> None:
        """Anything else is a local path."""
        assert not sources.is_remote_origin("~/my-skills")

    @_pytest.mark.parametrize(
        ("origin", "expected"),
        [
            ("https://github.com/org/skills.git", "skills"),
            ("https://github.com/org/skills/", "skills"),
            ("git@github.com:org/tools.git", "tools"),
            ("git@host:repo.git", "repo"),
            (".git", "external-skills"),
        ],
    )
    def test_derive_remote_name(self, origin: str, expected: str) -> None:
        """The last path segment, without .git, names a remote source."""
        assert sources.derive_remote_name(origin) == expected

    @_pytest.mark.parametrize("name", ["", ".hidden", "a/b", "local"])
    def test_invalid_names(self, name: str) -> None:
        """Names must be plain, visible, and not reserved."""
        with _pytest.raises(ValueError):
            sources.validate_source_name(name)


class TestAddRemote:
    """Tests for add_remote()."""

    def test_clones_and_registers(self, empty_state, storage, fake_vcs) -> None:
        """A new origin is cloned into `<sources_dir>/<name>`."""
        new_state, result = sources.add_remote(empty_state, REPO_URL, storage=storage, vcs=fake_vcs)

        assert result.status is sources.AddStatus.ADDED
        assert result.source.name == "skills"
        assert new_state.get("skills") == state.SourceEntry(kind="remote", origin=REPO_URL)
        assert (storage.source_root("skills") / "pdf" / "SKILL.md").is_file()
        assert empty_state.sources == {}

    def test_custom_name(self, empty_state, storage, fake_vcs) -> None:
        """An explicit name overrides the derived one."""
        new_state, _ = sources.add_remote(
            empty_state, REPO_URL, storage=storage, vcs=fake_vcs, name="team"
        )
        assert new_state.names() == ["team"]
        assert storage.source_root("team").is_dir()

    def test_unreachable_leaves_no_trace(self, empty_state, storage, fake_vcs) -> None:
        """A failed clone adds nothing and removes the partial directory."""
        with _pytest.raises(errors.OriginUnreachableError, match="repository not found"):
            sources.add_remote(
                empty_state, "https://example.com/missing.git", storage=storage, vcs=fake_vcs
            )
        assert not storage.source_root("missing").exists()

    def test_re_add_pulls(self, empty_state, storage, fake_vcs) -> None:
        """Adding an already-cloned source refreshes it instead."""
        s, _ = sources.add_remote(empty_state, REPO_URL, storage=storage, vcs=fake_vcs)

        s2, result = sources.add_remote(s, REPO_URL, storage=storage, vcs=fake_vcs)

        assert result.status is sources.AddStatus.REFRESHED
        assert fake_vcs.fetched == [REPO_URL]
        assert fake_vcs.pulled == [storage.source_root("skills")]
        assert s2 == s

    def test_re_add_offline_keeps_cache(self, empty_state, storage, fake_vcs) -> None:
        """A failed refresh is a warning, not an error."""
        s, _ = sources.add_remote(empty_state, REPO_URL, storage=storage, vcs=fake_vcs)
        fake_vcs.pull_ok = False

        _, result = sources.add_remote(s, REPO_URL, storage=storage, vcs=fake_vcs)

        assert result.status is sources.AddStatus.CACHED
        assert result.warning == sources.CACHED_CONTENT_WARNING

    def test_name_collision(self, empty_state, storage, fake_vcs) -> None:
        """A different origin cannot take an existing name."""
        fake_vcs.repos["https://other.example.com/skills.git"] = ["x"]
        s, _ = sources.add_remote(empty_state, REPO_URL, storage=storage, vcs=fake_vcs)

        with _pytest.raises(errors.SourceNameCollisionError):
            sources.add_remote(
                s, "https://other.example.com/skills.git", storage=storage, vcs=fake_vcs
            )


class TestAddLocal:
    """Tests for add_local()."""

    def test_links_directory(self, empty_state, storage, local_source_dir) -> None:
        """The storage root becomes a link to the canonical path."""
        new_state, result = sources.add_local(empty_state, local_source_dir, storage=storage)

        root = storage.source_root("my-skills")
        assert result.status is sources.AddStatus.ADDED
        assert root.is_symlink()
        assert _pathlib.Path(_os.path.realpath(root)) == _pathlib.Path(
            _os.path.realpath(local_source_dir)
        )
        assert new_state.get("my-skills").origin == _os.path.realpath(local_source_dir)

    def test_missing_path(self, empty_state, storage, tmp_path: _pathlib.Path) -> None:
        """A path that does not exist is rejected."""
        with _pytest.raises(errors.PathNotFoundError):
            sources.add_local(empty_state, tmp_path / "nope", storage=storage)

    def test_file_path(self, empty_state, storage, tmp_path: _pathlib.Path) -> None:
        """A regular file is not a source."""
        f = tmp_path / "file.txt"
        f.write_text("x")
        with _pytest.raises(errors.PathNotFoundError):
            sources.add_local(empty_state, f, storage=storage)

    def test_re_add_relinks(self, empty_state, storage, local_source_dir) -> None:
        """Registering the same directory again recreates the link."""
        s, _ = sources.add_local(empty_state, local_source_dir, storage=storage)
        storage.source_root("my-skills").unlink()

        _, result = sources.add_local(s, local_source_dir, storage=storage)

        assert result.status is sources.AddStatus.RELINKED
        assert storage.source_root("my-skills").is_symlink()

    def test_failed_relink_keeps_existing_link(
        self, empty_state, storage, local_source_dir, monkeypatch: _pytest.MonkeyPatch
    ) -> None:
        """If the new link cannot be made, the old storage link survives."""
        s, _ = sources.add_local(empty_state, local_source_dir, storage=storage)
        root = storage.source_root("my-skills")

        def refuse(*args, **kwargs) -> None:
            raise OSError(1, "Operation not permitted")

        monkeypatch.setattr(_os, "symlink", refuse)
        with _pytest.raises(errors.LinkUnsupportedError):
            sources.add_local(s, local_source_dir, storage=storage)

        assert root.is_symlink()
        assert (root / "pdf" / "SKILL.md").is_file()
        assert [p.name for p in storage.sources_dir.iterdir()] == ["my-skills"]

    def test_storage_root_is_not_a_local_source(
        self, empty_state, storage, skill_factory
    ) -> None:
        """A folder inside the storage area is refused and left intact."""
        root = storage.source_root("skills")
        skill_factory(root, "pdf")

        with _pytest.raises(errors.StorageOverlapError):
            sources.add_local(empty_state, root, storage=storage)
        with _pytest.raises(errors.StorageOverlapError):
            sources.add_local(empty_state, root / "pdf", storage=storage, name="pdf")

        assert not root.is_symlink()
        assert (root / "pdf" / "SKILL.md").is_file()

    def test_collision_with_other_directory(
        self, empty_state, storage, local_source_dir, tmp_path: _pathlib.Path
    ) -> None:
        """Two directories with the same base name need distinct names."""
        s, _ = sources.add_local(empty_state, local_source_dir, storage=storage)
        twin = tmp_path / "other" / "my-skills"
        twin.mkdir(parents=True)

        with _pytest.raises(errors.SourceNameCollisionError):
            sources.add_local(s, twin, storage=storage)

        s2, _ = sources.add_local(s, twin, storage=storage, name="my-skills-2")
        assert s2.names() == ["my-skills", "my-skills-2"]

    def test_add_source_dispatch(self, empty_state, storage, fake_vcs, local_source_dir) -> None:
        """add_source picks remote or local from the input's form."""
        s, remote = sources.add_source(empty_state, REPO_URL, storage=storage, vcs=fake_vcs)
        _, local = sources.add_source(s, str(local_source_dir), storage=storage, vcs=fake_vcs)

        assert remote.source.kind is state.SourceKind.REMOTE
        assert local.source.kind is state.SourceKind.LOCAL


class TestRefresh:
    """Tests for refresh()."""

    def test_remote_updated(self, empty_state, storage, fake_vcs) -> None:
        """Remote sources are pulled."""
        s, _ = sources.add_remote(empty_state, REPO_URL, storage=storage, vcs=fake_vcs)
        result = sources.refresh(s, "skills", storage=storage, vcs=fake_vcs)
        assert result.status is sources.RefreshStatus.UPDATED

    def test_remote_failure_reported(self, empty_state, storage, fake_vcs) -> None:
        """A failed pull is reported, not raised."""
        s, _ = sources.add_remote(empty_state, REPO_URL, storage=storage, vcs=fake_vcs)
        fake_vcs.pull_ok = False
        result = sources.refresh(s, "skills", storage=storage, vcs=fake_vcs)
        assert result.status is sources.RefreshStatus.FAILED

    def test_local_needs_nothing(self, empty_state, storage, fake_vcs, local_source_dir) -> None:
        """Local sources are live links."""
        s, _ = sources.add_local(empty_state, local_source_dir, storage=storage)
        result = sources.refresh(s, "my-skills", storage=storage, vcs=fake_vcs)
        assert result.status is sources.RefreshStatus.LOCAL
        assert fake_vcs.pulled == []

    def test_missing_root(self, storage, fake_vcs) -> None:
        """A registered source whose root vanished is reported missing."""
        s = state.RegistryState().with_source(
            "gone", state.SourceEntry(kind="remote", origin="https://h/gone.git")
        )
        result = sources.refresh(s, "gone", storage=storage, vcs=fake_vcs)
        assert result.status is sources.RefreshStatus.MISSING

    def test_unknown_source(self, empty_state, storage, fake_vcs) -> None:
        """Refreshing an unregistered name raises SourceNotFoundError."""
        with _pytest.raises(errors.SourceNotFoundError):
            sources.refresh(empty_state, "ghost", storage=storage, vcs=fake_vcs)


class TestRemove:
    """Tests for remove()."""

    def test_cascades_to_project(self, empty_state, storage, project, fake_vcs) -> None:
        """Removing a source unlinks its skills and deletes its root."""
        s, _ = sources.add_remote(empty_state, REPO_URL, storage=storage, vcs=fake_vcs)
        activation.activate("skills", "pdf", storage=storage, project=project)

        s2, result = sources.remove(s, "skills", storage=storage, project=project)

        assert s2.names() == []
        assert len(result.removed_activations) == 2
        assert not storage.source_root("skills").exists()
        assert active.list_active(project=project, storage=storage) == []

    def test_local_source_keeps_original(
        self, empty_state, storage, project, local_source_dir
    ) -> None:
        """Removing a local source deletes only the link, never the folder."""
        s, _ = sources.add_local(empty_state, local_source_dir, storage=storage)
        activation.activate("my-skills", "pdf", storage=storage, project=project)

        _, result = sources.remove(s, "my-skills", storage=storage, project=project)

        assert len(result.removed_activations) == 2
        assert not storage.source_root("my-skills").is_symlink()
        assert (local_source_dir / "pdf" / "SKILL.md").is_file()

    def test_other_sources_untouched(
        self, empty_state, storage, project, fake_vcs, local_source_dir
    ) -> None:
        """Only the removed source's activations go."""
        s, _ = sources.add_remote(empty_state, REPO_URL, storage=storage, vcs=fake_vcs)
        s, _ = sources.add_local(s, local_source_dir, storage=storage)
        activation.activate("skills", "xlsx", storage=storage, project=project)
        activation.activate("my-skills", "pdf", storage=storage, project=project)

        sources.remove(s, "skills", storage=storage, project=project)

        keys = {a.key for a in active.list_active(project=project, storage=storage)}
        assert keys == {"my-skills/pdf"}

    def test_unknown_source(self, empty_state, storage, project) -> None:
        """Removing an unregistered name raises SourceNotFoundError."""
        with _pytest.raises(errors.SourceNotFoundError):
            sources.remove(empty_state, "ghost", storage=storage, project=project)
