"""Noise filtering for `argocd app diff` output.

The CLI prints one section per Kubernetes resource, each starting with a
header such as ``===== apps/Deployment default/web ======`` followed by the
output of the external diff tool. Reviewers only care about changes to the
desired state, so this module drops:

- the server-managed ``metadata.managedFields`` block, found by tracking
  YAML indentation of the changed lines (no YAML parsing, the diff is text);
- changes of the ArgoCD tracking label and of the ``part-of`` label;
- sections left without any change once the above is gone.
"""

from __future__ import annotations

import re
from enum import StrEnum
from functools import lru_cache

from argodiff import console as con
from argodiff.config import (
    DEFAULT_NOISY_KEY,
    DEFAULT_PART_OF_LABEL,
    DEFAULT_TRACKING_LABEL,
)

SECTION_SPLIT = re.compile(r"(?=^===== )", re.MULTILINE)
BARE_HEADER = re.compile(r"^===== .*/.* ======$")
BLANK_RUNS = re.compile(r"\n{3,}")

# Change command emitted by plain `diff` ahead of a hunk, e.g. "12c12" or "3,4d2".
_CHANGE_COMMAND = r"(?:\d+(?:,\d+)?[acd]\d+(?:,\d+)?\n)?"


def is_change_line(line: str) -> bool:
    """True for added/removed lines of a unified diff (not ---/+++ file markers)."""
    return line[:1] in ("+", "-") and not line.startswith(("+++", "---"))


def _has_changes(line: str) -> bool:
    return is_change_line(line) or line[:1] in ("<", ">")


class ScanState(StrEnum):
    OUTSIDE = "outside"
    IN_METADATA = "in-metadata"
    SKIPPING = "skipping"


class MetadataScanner:
    """Line-by-line state machine that spots the noisy metadata block.

    Only change lines take part; headers, hunk markers, file markers and
    context lines are always kept and never move the state. Indentation is
    the number of spaces between the +/- marker and the content.

    ============  ===========================================  ================
    state         change line                                  next state
    ============  ===========================================  ================
    OUTSIDE       ``metadata:``                                IN_METADATA
    OUTSIDE       anything else                                OUTSIDE
    IN_METADATA   ``metadata:``                                IN_METADATA
    IN_METADATA   indentation 0                                OUTSIDE
    IN_METADATA   ``<noisy key>:`` (dropped)                   SKIPPING(indent)
    IN_METADATA   anything else                                IN_METADATA
    SKIPPING(b)   indentation == b, not a ``-`` list item      IN_METADATA, and
                                                               the line is
                                                               evaluated again
    SKIPPING(b)   anything else (dropped)                      SKIPPING(b)
    ============  ===========================================  ================

    Blank change lines are dropped while skipping and otherwise kept without
    a transition. A block that never closes is dropped up to the end of the
    section.
    """

    def __init__(self, noisy_key: str = DEFAULT_NOISY_KEY):
        self.noisy_key_line = f"{noisy_key}:"
        self.state = ScanState.OUTSIDE
        self.baseline: int | None = None

    def feed(self, line: str) -> bool:
        """Advance over one line; returns whether the line is kept."""
        if not is_change_line(line):
            return True

        content: str = line[1:]
        stripped: str = content.strip()
        indent: int = len(content) - len(content.lstrip(" "))

        if self.state is ScanState.SKIPPING:
            if stripped and indent == self.baseline and not stripped.startswith("-"):
                self.state = ScanState.IN_METADATA
                self.baseline = None
            else:
                return False

        if not stripped:
            return True

        if stripped == "metadata:":
            self.state = ScanState.IN_METADATA
        elif indent == 0:
            self.state = ScanState.OUTSIDE
        elif self.state is ScanState.IN_METADATA and stripped == self.noisy_key_line:
            self.state = ScanState.SKIPPING
            self.baseline = indent
            return False

        return True


@lru_cache(maxsize=8)
def _noise_patterns(tracking_label: str, part_of_label: str) -> tuple[re.Pattern[str], ...]:
    tracking = re.escape(tracking_label)
    part_of = re.escape(part_of_label)
    return (
        re.compile(
            rf"^{_CHANGE_COMMAND}[-<][ \t]+{tracking}:.*\n(?:---\n)?[+>][ \t]+{tracking}:.*(?:\n|$)",
            re.MULTILINE,
        ),
        re.compile(
            rf"^{_CHANGE_COMMAND}[-+<>][ \t]+{part_of}:.*(?:\n|$)",
            re.MULTILINE,
        ),
    )


def remove_label_noise(
    text: str,
    tracking_label: str = DEFAULT_TRACKING_LABEL,
    part_of_label: str = DEFAULT_PART_OF_LABEL,
) -> str:
    """Drop tracking-label swaps and part-of label lines.

    A tracking-label change is a removed line followed by an added line for
    the same key, optionally separated by plain diff's ``---`` gap. Removals
    are repeated until nothing changes, since dropping one line can bring a
    new pair together. Only indented lines match: a key at column 0 is not
    a label and is left for the metadata scan.
    """
    patterns = _noise_patterns(tracking_label, part_of_label)
    while True:
        cleaned: str = text
        for pattern in patterns:
            cleaned = pattern.sub("", cleaned)
        if cleaned == text:
            return text
        text = cleaned


def split_sections(raw: str) -> list[str]:
    """Split diff output at each ``===== `` resource header."""
    return [section for section in SECTION_SPLIT.split(raw) if section]


def filter_section(
    section: str,
    tracking_label: str = DEFAULT_TRACKING_LABEL,
    part_of_label: str = DEFAULT_PART_OF_LABEL,
    noisy_key: str = DEFAULT_NOISY_KEY,
) -> str:
    """Remove noise from a single resource section."""
    lines: list[str] = section.split("\n")
    if not any(_has_changes(line) for line in lines):
        return section

    try:
        scanner = MetadataScanner(noisy_key)
        text: str = "\n".join(line for line in lines if scanner.feed(line))
    except Exception as e:
        con.print_warning(f"Could not scan diff section, keeping it whole: {e}")
        text = section

    return remove_label_noise(text, tracking_label, part_of_label).strip()


def is_meaningful(section: str) -> bool:
    """Whether a resource section still shows at least one change.

    A bare header, or a header with only file markers, hunk markers and
    context lines, is not worth showing.
    """
    lines: list[str] = [line for line in section.strip().split("\n") if line.strip()]
    if len(lines) <= 1 and (not lines or BARE_HEADER.match(lines[0])):
        return False
    return any(_has_changes(line) for line in lines[1:])


def filter_diff(
    raw: str,
    tracking_label: str = DEFAULT_TRACKING_LABEL,
    part_of_label: str = DEFAULT_PART_OF_LABEL,
    noisy_key: str = DEFAULT_NOISY_KEY,
) -> str:
    """Filter the full `argocd app diff` output.

    Text before the first resource header (warnings printed by the CLI) is
    kept when not blank. Returns an empty string when nothing is left.
    """
    kept: list[str] = []
    for section in split_sections(raw):
        filtered: str = filter_section(
            section, tracking_label, part_of_label, noisy_key
        ).strip()
        if not filtered:
            continue
        if filtered.startswith("===== ") and not is_meaningful(filtered):
            continue
        kept.append(filtered)

    return BLANK_RUNS.sub("\n\n", "\n".join(kept)).strip()
