"""Tests for sync: source refresh plus link repair."""

import os as _os
import pathlib as _pathlib

import skillcast.registry.sources as sources
import skillcast.skills.activation as activation
import skillcast.sync as sync

REPO_URL = "https://example.com/org/skills.git"


def _registered(empty_state, storage, fake_vcs, local_source_dir):
    s, _ = sources.add_remote(empty_state, REPO_URL, storage=storage, vcs=fake_vcs)
    s, _ = sources.add_local(s, local_source_dir, storage=storage)
    return s


class TestSync:
    """Tests for sync.sync()."""

    def test_refreshes_every_source(
        self, empty_state, storage, project, fake_vcs, local_source_dir
    ) -> None:
        """Each registered source gets one refresh result."""
        s = _registered(empty_state, storage, fake_vcs, local_source_dir)

        report = sync.sync(s, storage=storage, project=project, vcs=fake_vcs)

        assert [(r.name, r.status) for r in report.sources] == [
            ("skills", sources.RefreshStatus.UPDATED),
            ("my-skills", sources.RefreshStatus.LOCAL),
        ]
        assert report.failed_sources == []

    def test_relinks_active_skills(
        self, empty_state, storage, project, fake_vcs, local_source_dir
    ) -> None:
        """Linked skills from both kinds of source are re-placed."""
        s = _registered(empty_state, storage, fake_vcs, local_source_dir)
        activation.activate("skills", "pdf", storage=storage, project=project)
        activation.activate(
            "my-skills",
            "lint",
            storage=storage,
            project=project,
            skill_path=storage.source_root("my-skills") / "group" / "lint",
        )

        report = sync.sync(s, storage=storage, project=project, vcs=fake_vcs)

        assert sorted(a.key for a in report.relinked) == [
            "my-skills/lint",
            "my-skills/lint",
            "skills/pdf",
            "skills/pdf",
        ]
        assert (project.skills_dir("claude") / "lint").is_symlink()
        assert report.to_dict()["skill_count"] == 4

    def test_repairs_link_keeping_literal_target(
        self, empty_state, storage, project, fake_vcs, local_source_dir
    ) -> None:
        """A re-placed link still points through the storage area."""
        s = _registered(empty_state, storage, fake_vcs, local_source_dir)
        activation.activate(
            "my-skills", "pdf", storage=storage, project=project, targets=["claude"]
        )

        sync.sync(s, storage=storage, project=project, vcs=fake_vcs)

        link = project.skills_dir("claude") / "pdf"
        assert _pathlib.Path(_os.readlink(link)) == storage.source_root("my-skills") / "pdf"

    def test_orphans_left_alone(self, empty_state, storage, project, fake_vcs) -> None:
        """A link whose target vanished is reported, not deleted."""
        s, _ = sources.add_remote(empty_state, REPO_URL, storage=storage, vcs=fake_vcs)
        activation.activate("skills", "pdf", storage=storage, project=project, targets=["claude"])
        root = storage.source_root("skills")
        (root / "pdf" / "SKILL.md").unlink()
        (root / "pdf").rmdir()

        report = sync.sync(s, storage=storage, project=project, vcs=fake_vcs)

        assert [a.key for a in report.orphaned] == ["skills/pdf"]
        assert (project.skills_dir("claude") / "pdf").is_symlink()

    def test_copies_untracked(self, empty_state, storage, project, fake_vcs) -> None:
        """Copies cannot be traced to a source and are skipped."""
        s, _ = sources.add_remote(empty_state, REPO_URL, storage=storage, vcs=fake_vcs)
        activation.activate(
            "skills", "pdf", storage=storage, project=project, targets=["claude"], copy=True
        )

        report = sync.sync(s, storage=storage, project=project, vcs=fake_vcs)

        assert [a.key for a in report.untracked] == ["local/pdf"]
        assert report.relinked == []

    def test_offline_source_still_relinks(
        self, empty_state, storage, project, fake_vcs
    ) -> None:
        """A failed pull does not stop links from being refreshed."""
        s, _ = sources.add_remote(empty_state, REPO_URL, storage=storage, vcs=fake_vcs)
        activation.activate("skills", "pdf", storage=storage, project=project, targets=["claude"])
        fake_vcs.pull_ok = False

        report = sync.sync(s, storage=storage, project=project, vcs=fake_vcs)

        assert [r.name for r in report.failed_sources] == ["skills"]
        assert [a.key for a in report.relinked] == ["skills/pdf"]
