"""Tracking-label lookup for changed manifests.

A changed file belongs to an ArgoCD application when it carries the
application's tracking label, either as a regular Kubernetes label
(``metadata.labels``) or as a Kustomize ``labels`` entry
(``labels: [{pairs: {...}}]``).
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

import yaml

from argodiff import console as con

if TYPE_CHECKING:
    from collections.abc import Iterable


@dataclass(frozen=True)
class HasMetadataLabels:
    """A Kubernetes resource with a ``metadata.labels`` mapping."""

    labels: dict[str, Any]


@dataclass(frozen=True)
class HasLabelPairsList:
    """A Kustomization whose ``labels`` list carries ``pairs`` mappings."""

    pairs: tuple[dict[str, Any], ...]


@dataclass(frozen=True)
class Unrecognized:
    """Any document without labels in a known place."""


LabelDocument = HasMetadataLabels | HasLabelPairsList | Unrecognized


def classify_document(doc: Any) -> tuple[LabelDocument, ...]:
    """List the label layouts a parsed YAML document uses, in lookup order.

    ``metadata.labels`` comes first; a Kustomization may carry both layouts
    and the ``labels[].pairs`` list is consulted when the first lacks the key.
    """
    if not isinstance(doc, dict):
        return (Unrecognized(),)

    found: list[LabelDocument] = []

    metadata = doc.get("metadata")
    if isinstance(metadata, dict) and isinstance(metadata.get("labels"), dict):
        found.append(HasMetadataLabels(labels=metadata["labels"]))

    labels = doc.get("labels")
    if isinstance(labels, list):
        pairs = tuple(
            entry["pairs"]
            for entry in labels
            if isinstance(entry, dict) and isinstance(entry.get("pairs"), dict)
        )
        found.append(HasLabelPairsList(pairs=pairs))

    return tuple(found) or (Unrecognized(),)


def label_value(document: LabelDocument, tracking_key: str) -> str | None:
    if isinstance(document, HasMetadataLabels):
        value = document.labels.get(tracking_key)
        return None if value is None else str(value)

    if isinstance(document, HasLabelPairsList):
        for pairs in document.pairs:
            value = pairs.get(tracking_key)
            if value is not None:
                return str(value)
        return None

    return None


def extract_tracking_label(content: str, tracking_key: str) -> str | None:
    """Return the tracking label value found in a YAML document, if any.

    For multi-document streams the first non-empty document decides.
    Content that is not valid YAML yields None.
    """
    try:
        doc = next((d for d in yaml.safe_load_all(content) if d is not None), None)
    except yaml.YAMLError as e:
        con.print_warning(f"Could not parse YAML: {_first_line(str(e))}")
        return None

    for document in classify_document(doc):
        value = label_value(document, tracking_key)
        if value is not None:
            return value
    return None


def read_tracking_label(path: Path, tracking_key: str) -> str | None:
    """Read a file and return its tracking label value.

    Missing, unreadable and non-text files yield None.
    """
    try:
        content: str = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        con.print_warning(f"Skipping {con.format_path(str(path))}: {e}")
        return None

    return extract_tracking_label(content, tracking_key)


def _resolve(file: str | Path, root: Path | None) -> Path:
    path = Path(file)
    if root is not None and not path.is_absolute():
        return root / path
    return path


def is_affected(
    changed_files: Iterable[str | Path],
    app_name: str,
    tracking_key: str,
    root: Path | None = None,
) -> bool:
    """Check whether any changed file carries the application's tracking label.

    Stops reading files at the first match. Relative paths are resolved
    against root (the working directory when omitted).
    """
    return any(
        read_tracking_label(_resolve(file, root), tracking_key) == app_name
        for file in changed_files
    )


def label_index(
    changed_files: Iterable[str | Path],
    tracking_key: str,
    root: Path | None = None,
) -> dict[str, str | None]:
    """Map every changed file to the tracking label it carries."""
    return {
        str(file): read_tracking_label(_resolve(file, root), tracking_key)
        for file in changed_files
    }


def _first_line(text: str) -> str:
    return text.strip().splitlines()[0] if text.strip() else text
