from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

from argodiff.labels import (
    HasLabelPairsList,
    HasMetadataLabels,
    Unrecognized,
    classify_document,
    extract_tracking_label,
    is_affected,
    label_index,
    label_value,
    read_tracking_label,
)

TRACKING = "argocd.argoproj.io/instance"

DEPLOYMENT = """\
apiVersion: apps/v1
kind: Deployment
metadata:
  name: web
  labels:
    argocd.argoproj.io/instance: shop
spec:
  replicas: 2
"""

KUSTOMIZATION = """\
apiVersion: kustomize.config.k8s.io/v1beta1
kind: Kustomization
labels:
  - pairs:
      team: payments
  - includeSelectors: true
    pairs:
      argocd.argoproj.io/instance: shop
resources:
  - deployment.yaml
"""


class TestClassifyDocument:
    def test_metadata_labels(self):
        doc = {"metadata": {"labels": {"a": "b"}}}

        assert classify_document(doc) == (HasMetadataLabels(labels={"a": "b"}),)

    def test_label_pairs(self):
        doc = {"labels": [{"pairs": {"a": "b"}}, {"includeSelectors": True}, "junk"]}

        assert classify_document(doc) == (HasLabelPairsList(pairs=({"a": "b"},)),)

    def test_both_layouts_metadata_first(self):
        doc = {
            "metadata": {"labels": {"other": "x"}},
            "labels": [{"pairs": {TRACKING: "shop"}}],
        }

        assert classify_document(doc) == (
            HasMetadataLabels(labels={"other": "x"}),
            HasLabelPairsList(pairs=({TRACKING: "shop"},)),
        )

    def test_metadata_without_labels_falls_through(self):
        doc = {"metadata": {"name": "x"}, "labels": [{"pairs": {TRACKING: "shop"}}]}

        assert classify_document(doc) == (HasLabelPairsList(pairs=({TRACKING: "shop"},)),)

    def test_unrecognized(self):
        assert classify_document(None) == (Unrecognized(),)
        assert classify_document(["a", "b"]) == (Unrecognized(),)
        assert classify_document({"kind": "ConfigMap"}) == (Unrecognized(),)
        assert classify_document({"labels": {"a": "b"}}) == (Unrecognized(),)


class TestLabelValue:
    def test_non_string_values_are_stringified(self):
        assert label_value(HasMetadataLabels(labels={TRACKING: 42}), TRACKING) == "42"

    def test_first_pairs_entry_with_key_wins(self):
        document = HasLabelPairsList(pairs=({"team": "a"}, {TRACKING: "one"}, {TRACKING: "two"}))

        assert label_value(document, TRACKING) == "one"

    def test_unrecognized_has_no_value(self):
        assert label_value(Unrecognized(), TRACKING) is None


class TestExtractTrackingLabel:
    def test_deployment(self):
        assert extract_tracking_label(DEPLOYMENT, TRACKING) == "shop"

    def test_kustomization(self):
        assert extract_tracking_label(KUSTOMIZATION, TRACKING) == "shop"

    def test_custom_key(self):
        assert extract_tracking_label(KUSTOMIZATION, "team") == "payments"

    def test_pairs_consulted_when_metadata_labels_lack_key(self):
        content = "metadata:\n  labels:\n    team: infra\nlabels:\n- pairs:\n    argocd.argoproj.io/instance: web\n"

        assert extract_tracking_label(content, TRACKING) == "web"

    def test_metadata_labels_win_over_pairs(self):
        content = (
            "metadata:\n  labels:\n    argocd.argoproj.io/instance: shop\n"
            "labels:\n- pairs:\n    argocd.argoproj.io/instance: web\n"
        )

        assert extract_tracking_label(content, TRACKING) == "shop"

    def test_missing_label(self):
        assert extract_tracking_label("kind: ConfigMap\ndata: {}\n", TRACKING) is None

    def test_first_non_empty_document_decides(self):
        content = "---\n---\nkind: Namespace\n---\n" + DEPLOYMENT

        assert extract_tracking_label(content, TRACKING) is None

    def test_leading_empty_documents_are_skipped(self):
        content = "---\n# comment only\n---\n" + DEPLOYMENT

        assert extract_tracking_label(content, TRACKING) == "shop"

    def test_empty_content(self):
        assert extract_tracking_label("", TRACKING) is None

    def test_invalid_yaml(self):
        assert extract_tracking_label("key: [unclosed\n", TRACKING) is None


class TestReadTrackingLabel:
    def test_reads_file(self, tmp_path: Path):
        path = tmp_path / "deployment.yaml"
        path.write_text(DEPLOYMENT)

        assert read_tracking_label(path, TRACKING) == "shop"

    def test_missing_file(self, tmp_path: Path):
        assert read_tracking_label(tmp_path / "gone.yaml", TRACKING) is None

    def test_binary_file(self, tmp_path: Path):
        path = tmp_path / "logo.png"
        path.write_bytes(b"\x89PNG\r\n\x1a\n\xff\xfe\x00")

        assert read_tracking_label(path, TRACKING) is None

    def test_directory(self, tmp_path: Path):
        assert read_tracking_label(tmp_path, TRACKING) is None


class TestIsAffected:
    def test_matching_file(self, tmp_path: Path):
        (tmp_path / "deployment.yaml").write_text(DEPLOYMENT)
        (tmp_path / "README.md").write_text("# docs\n")

        assert is_affected(["README.md", "deployment.yaml"], "shop", TRACKING, tmp_path)

    def test_other_application(self, tmp_path: Path):
        (tmp_path / "deployment.yaml").write_text(DEPLOYMENT)

        assert not is_affected(["deployment.yaml"], "cart", TRACKING, tmp_path)

    def test_deleted_file_is_not_a_match(self, tmp_path: Path):
        assert not is_affected(["removed.yaml"], "shop", TRACKING, tmp_path)

    def test_no_changed_files(self):
        assert not is_affected([], "shop", TRACKING)

    def test_stops_at_first_match(self):
        with patch("argodiff.labels.read_tracking_label", side_effect=["shop", "cart"]) as mock_read:
            assert is_affected(["a.yaml", "b.yaml"], "shop", TRACKING)

        assert mock_read.call_count == 1

    def test_relative_to_working_directory(self, tmp_path: Path, monkeypatch):
        (tmp_path / "k8s").mkdir()
        (tmp_path / "k8s" / "kustomization.yaml").write_text(KUSTOMIZATION)
        monkeypatch.chdir(tmp_path)

        assert is_affected(["k8s/kustomization.yaml"], "shop", TRACKING)

    def test_absolute_path_ignores_root(self, tmp_path: Path):
        path = tmp_path / "deployment.yaml"
        path.write_text(DEPLOYMENT)

        assert is_affected([path], "shop", TRACKING, root=Path("/nonexistent"))


class TestLabelIndex:
    def test_maps_every_file(self, tmp_path: Path):
        (tmp_path / "deployment.yaml").write_text(DEPLOYMENT)
        (tmp_path / "notes.txt").write_text("plain text\n")

        index = label_index(["deployment.yaml", "notes.txt", "gone.yaml"], TRACKING, tmp_path)

        assert index == {"deployment.yaml": "shop", "notes.txt": None, "gone.yaml": None}
