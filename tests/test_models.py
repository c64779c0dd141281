from __future__ import annotations

import pytest
from pydantic import ValidationError

from argodiff.models import (
    AppDiff,
    Application,
    ApplicationList,
    AppSource,
    DiffFailed,
    SyncStatus,
)


class TestSyncStatus:
    def test_parse_known(self):
        assert SyncStatus.parse("Synced") is SyncStatus.SYNCED
        assert SyncStatus.parse("OutOfSync") is SyncStatus.OUT_OF_SYNC

    def test_parse_unknown(self):
        assert SyncStatus.parse(None) is SyncStatus.UNKNOWN
        assert SyncStatus.parse("Progressing") is SyncStatus.UNKNOWN


class TestAppSource:
    @pytest.mark.parametrize("revision", ["", "main", "master", "HEAD"])
    def test_tracks_primary_branch(self, revision: str):
        assert AppSource(targetRevision=revision).tracks_primary_branch

    @pytest.mark.parametrize("revision", ["v1.0.0", "develop", "3f2a1bc"])
    def test_pinned_revision(self, revision: str):
        assert not AppSource(target_revision=revision).tracks_primary_branch


class TestApplication:
    def test_from_api(self):
        app = Application.from_api(
            {
                "metadata": {"name": "web", "namespace": "argocd"},
                "spec": {
                    "source": {
                        "repoURL": "https://github.com/owner/repo",
                        "path": "apps/web",
                        "targetRevision": "main",
                        "kustomize": {"namePrefix": "prod-"},
                    }
                },
                "status": {"sync": {"status": "OutOfSync"}},
            }
        )

        assert app.name == "web"
        assert app.source.repo_url == "https://github.com/owner/repo"
        assert app.source.path == "apps/web"
        assert app.source.target_revision == "main"
        assert app.sync_status is SyncStatus.OUT_OF_SYNC

    def test_multi_source(self):
        app = Application.from_api(
            {
                "metadata": {"name": "web"},
                "spec": {
                    "sources": [
                        {"repoURL": "https://charts.example.com", "chart": "web"},
                        {"repoURL": "https://github.com/owner/repo", "path": "values"},
                    ]
                },
            }
        )

        assert app.source.path == "values"
        assert app.sync_status is SyncStatus.UNKNOWN

    def test_missing_fields(self):
        app = Application.from_api({"metadata": {"name": "bare"}, "spec": {"source": {"path": None}}})

        assert app.source.path == ""
        assert app.source.tracks_primary_branch

    def test_name_is_required(self):
        with pytest.raises(ValidationError):
            Application.from_api({"spec": {}})

    def test_repr(self):
        app = Application(name="web", source=AppSource(path="apps/web"))

        assert repr(app) == "Application(name=web, path=apps/web, sync=Unknown)"


class TestApplicationList:
    def test_null_items(self):
        assert ApplicationList.from_api({"items": None}).items == []

    def test_items(self):
        payload = {"items": [{"metadata": {"name": "a"}}, {"metadata": {"name": "b"}}]}

        assert [app.name for app in ApplicationList.from_api(payload).items] == ["a", "b"]


class TestAppDiff:
    def test_has_content(self):
        app = Application(name="web")

        assert not AppDiff(app).has_content
        assert not AppDiff(app, diff="  \n").has_content
        assert AppDiff(app, diff="+a").has_content
        assert AppDiff(app, error=DiffFailed("")).has_content
