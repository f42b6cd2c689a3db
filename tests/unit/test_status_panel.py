"""Tests for status.yaml panel descriptors."""

from __future__ import annotations

from pathlib import Path

import pytest

from omakure.status_panel import StatusPanel, StatusPanelError, load_status_panel


def test_missing_file_means_no_panel(tmp_path: Path) -> None:
    assert load_status_panel(tmp_path) is None


def test_panel_with_expanded_variables(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("AZ_SUB", "sub-42")
    monkeypatch.delenv("AZ_UNSET", raising=False)
    (tmp_path / "status.yaml").write_text(
        "title: Azure\nlines:\n  - 'Subscription: $AZ_SUB'\n  - 'Region: ${AZ_UNSET}'\n",
        encoding="utf-8",
    )
    assert load_status_panel(tmp_path) == StatusPanel(
        title="Azure", lines=["Subscription: sub-42", "Region: ${AZ_UNSET}"]
    )


def test_title_defaults_to_directory_name(tmp_path: Path) -> None:
    d = tmp_path / "network"
    d.mkdir()
    (d / "status.yaml").write_text("lines: [a]\n", encoding="utf-8")
    assert load_status_panel(d) == StatusPanel(title="network", lines=["a"])


@pytest.mark.parametrize(
    "text",
    ["- just\n- a list\n", "title: [1, 2]\n", "lines: not-a-list\n", "lines: [1, 2]\n", "title: [unclosed\n"],
)
def test_malformed_descriptor(tmp_path: Path, text: str) -> None:
    (tmp_path / "status.yaml").write_text(text, encoding="utf-8")
    with pytest.raises(StatusPanelError):
        load_status_panel(tmp_path)
