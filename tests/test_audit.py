import os
import pytest

from media_pruner.audit import SpaceAuditor, distinct_roots, render_audit
from media_pruner.exceptions import ConfigError
from conftest import make_file


def test_hardlinks_within_one_root_counted_once(tmp_path):
    root = tmp_path / "data"
    a = make_file(root / "torrents" / "a.mkv", 1000)
    (root / "media").mkdir()
    os.link(a, root / "media" / "a.mkv")
    make_file(root / "media" / "b.mkv", 50)

    report = SpaceAuditor().audit([root])

    usage = report.roots[0]
    assert usage.file_count == 3
    assert usage.apparent_bytes == 2050
    assert usage.actual_bytes == 1050
    assert usage.hardlink_overcount == 1000
    assert usage.multi_link_files == 2
    assert usage.fs_total_bytes is not None
    assert report.hardlink_savings == 1000
    assert report.cross_root_groups == []


def test_cross_root_links_are_grouped(tmp_path):
    torrents = tmp_path / "torrents"
    media = tmp_path / "media"
    a = make_file(torrents / "a.mkv", 10)
    media.mkdir()
    os.link(a, media / "a.mkv")
    make_file(media / "solo.mkv", 7)

    report = SpaceAuditor().audit([torrents, media])

    assert report.cross_root_groups == [sorted([a, media / "a.mkv"])]
    assert [u.actual_bytes for u in report.roots] == [10, 17]
    assert report.linked_apparent_bytes == 20
    assert report.linked_actual_bytes == 10

    text = render_audit(report)
    assert "Hard links shared between roots: 1 groups" in text
    assert str(media / "a.mkv") in text


def test_missing_root_rejected(tmp_path):
    with pytest.raises(ConfigError):
        SpaceAuditor().audit([tmp_path / "missing"])


def test_repeated_and_nested_roots_walked_once(tmp_path):
    root = tmp_path / "data"
    a = make_file(root / "torrents" / "a.mkv", 10)
    (root / "media").mkdir()
    os.link(a, root / "media" / "a.mkv")

    report = SpaceAuditor().audit([root / "media", root, root])

    assert [u.root for u in report.roots] == [root]
    assert report.linked_apparent_bytes == 20
    assert report.linked_actual_bytes == 10
    assert report.cross_root_groups == []


def test_distinct_roots(tmp_path):
    a, b = tmp_path / "a", tmp_path / "b"
    assert distinct_roots([a, b, a, a / "x"]) == [a, b]
