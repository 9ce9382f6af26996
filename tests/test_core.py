import logging
import os
import pytest
from pathlib import Path

from media_pruner.core import PrunePlanner, normalize_extensions
from media_pruner.exceptions import ConfigError
from media_pruner.models import KIND_FILE, KIND_FOLDER
from media_pruner.reporting import ReportGenerator
from conftest import make_file, MIB


def test_matched_file_preserves_folder(trees):
    source, media = trees
    make_file(source / "MovieA" / "file1.mkv", 2000 * MIB)
    make_file(source / "MovieA" / "file1.nfo", 2048)
    make_file(media / "Movies" / "Movie A (2020)" / "Movie A.mkv", 2000 * MIB + MIB // 2)

    plan = PrunePlanner().plan(source, media, MIB)

    assert len(plan.matched) == 1
    assert plan.matched[0].media_record.path.name == "Movie A.mkv"
    assert plan.preserved_folders == [source / "MovieA"]
    assert plan.deletions == []


def test_unmatched_folder_is_planned_with_directory_size(trees):
    source, media = trees
    make_file(source / "MovieB" / "file2.mkv", 500 * MIB)
    make_file(source / "MovieB" / "file2.srt", 4000)
    make_file(media / "other.mkv", 900 * MIB)

    plan = PrunePlanner().plan(source, media, MIB)

    assert len(plan.deletions) == 1
    entry = plan.deletions[0]
    assert entry.target == source / "MovieB"
    assert entry.kind == KIND_FOLDER
    assert entry.size_bytes == 500 * MIB + 4000
    assert entry.unmatched_files == (source / "MovieB" / "file2.mkv",)
    assert plan.total_savings == 500 * MIB + 4000


def test_standalone_file_is_planned_separately(trees):
    source, media = trees
    make_file(source / "clip.mp4", 10 * MIB)
    make_file(media / "lib.mkv", 300 * MIB)

    plan = PrunePlanner().plan(source, media, MIB)

    assert plan.folder_deletions == []
    assert [(e.target, e.kind, e.size_bytes) for e in plan.file_deletions] == [
        (source / "clip.mp4", KIND_FILE, 10 * MIB)
    ]
    assert plan.verdicts == []


def test_any_nested_match_preserves_top_level_folder(trees):
    source, media = trees
    make_file(source / "Show" / "Season 1" / "Extras" / "e01.mkv", 700 * MIB)
    make_file(source / "Show" / "Season 2" / "e01.mkv", 123 * MIB)
    make_file(media / "Show" / "S01E01.mkv", 700 * MIB)

    plan = PrunePlanner().plan(source, media, MIB)

    assert len(plan.unmatched_in_folder) == 1
    verdict = plan.verdict_for(source / "Show")
    assert verdict.has_any_match
    assert not verdict.is_deletion_candidate
    assert plan.deletions == []


def test_matched_standalone_does_not_protect_folders(trees):
    source, media = trees
    make_file(source / "clip.mp4", 10 * MIB)
    make_file(source / "Extras" / "bonus.mkv", 50 * MIB)
    make_file(media / "clip.mp4", 10 * MIB)

    plan = PrunePlanner().plan(source, media, MIB)

    assert plan.matched[0].folder is None
    assert plan.preserved_folders == []
    assert [e.target for e in plan.deletions] == [source / "Extras"]


def test_every_source_file_has_one_result(trees):
    source, media = trees
    make_file(source / "A" / "a.mkv", 1 * MIB)
    make_file(source / "B" / "b.avi", 2 * MIB)
    make_file(source / "c.m4v", 3 * MIB)
    make_file(source / "notes.txt", 3 * MIB)
    make_file(media / "x.mkv", 2 * MIB)

    plan = PrunePlanner().plan(source, media, 0)

    paths = [r.record.path for r in plan.results]
    assert len(paths) == len(set(paths)) == plan.source_count == 3
    assert len(plan.matched) + len(plan.unmatched_in_folder) + len(plan.unmatched_standalone) == 3


def test_plan_is_repeatable(trees):
    source, media = trees
    make_file(source / "Keep" / "k.mkv", 40 * MIB)
    make_file(source / "Drop" / "d.mkv", 41 * MIB + 7)
    make_file(source / "loose.mp4", 5 * MIB)
    make_file(media / "k.mkv", 40 * MIB + 100)

    planner = PrunePlanner()
    first = planner.plan(source, media, MIB)
    second = planner.plan(source, media, MIB)

    assert first == second
    assert (source / "Drop").exists()


def test_debug_logging_does_not_change_plan(trees, caplog):
    source, media = trees
    make_file(source / "Drop" / "d.mkv", 41 * MIB)
    make_file(source / "Keep" / "k.mkv", 40 * MIB)
    make_file(media / "k.mkv", 40 * MIB)

    quiet = PrunePlanner().plan(source, media, MIB)
    with caplog.at_level(logging.DEBUG):
        loud = PrunePlanner().plan(source, media, MIB)

    assert quiet == loud
    assert any("MATCH" in m for m in caplog.messages)


def test_folder_removed_before_decision_is_not_planned(trees, monkeypatch):
    source, media = trees
    make_file(source / "Gone" / "g.mkv", 10 * MIB)
    gone = source / "Gone"

    real_is_dir = Path.is_dir

    def is_dir(self, *args, **kwargs):
        if self == gone:
            return False
        return real_is_dir(self, *args, **kwargs)

    monkeypatch.setattr(Path, "is_dir", is_dir)

    plan = PrunePlanner().plan(source, media, MIB)

    verdict = plan.verdict_for(gone)
    assert verdict is not None
    assert not verdict.exists
    assert plan.deletions == []


def test_empty_trees_produce_empty_plan(trees):
    source, media = trees
    make_file(source / "Movie" / "readme.txt", 10)

    plan = PrunePlanner().plan(source, media, MIB)

    assert plan.source_count == plan.media_count == 0
    assert plan.results == []
    assert plan.deletions == []


def test_custom_extensions_are_normalized(trees):
    source, media = trees
    make_file(source / "Clip" / "c.MOV", 3 * MIB)

    plan = PrunePlanner(["MOV"]).plan(source, media, MIB)
    assert plan.source_count == 1
    assert normalize_extensions(["mkv", ".MP4"]) == {".mkv", ".mp4"}


def test_empty_extension_rejected():
    with pytest.raises(ConfigError):
        PrunePlanner(["  "])


def test_missing_source_rejected(trees):
    source, media = trees
    with pytest.raises(ConfigError, match="Source path not found"):
        PrunePlanner().plan(source / "nope", media)


def test_file_as_media_root_rejected(trees):
    source, media = trees
    not_a_dir = make_file(media / "file.mkv", 1)
    with pytest.raises(ConfigError, match="not a directory"):
        PrunePlanner().plan(source, not_a_dir)


def test_negative_tolerance_rejected(trees):
    source, media = trees
    with pytest.raises(ConfigError, match="negative"):
        PrunePlanner().plan(source, media, -1)


def test_unreadable_source_file_is_skipped_and_reported(trees, monkeypatch):
    source, media = trees
    make_file(source / "Keep" / "k.mkv", 40 * MIB)
    bad = make_file(source / "Drop" / "bad.mkv", 41 * MIB)
    make_file(media / "k.mkv", 40 * MIB)

    real_stat = Path.stat

    def flaky_stat(self, *args, **kwargs):
        if self == bad:
            raise PermissionError(13, "Permission denied")
        return real_stat(self, *args, **kwargs)

    monkeypatch.setattr(Path, "stat", flaky_stat)

    plan = PrunePlanner().plan(source, media, MIB)

    assert plan.skipped == [bad]
    assert plan.source_count == 1
    assert len(plan.matched) == 1
    assert plan.deletions == []
    assert "Files skipped (unreadable): 1" in ReportGenerator().render(plan)


def test_unlistable_source_folder_does_not_stop_plan(trees, monkeypatch):
    source, media = trees
    make_file(source / "Drop" / "d.mkv", 41 * MIB)
    make_file(source / "Locked" / "l.mkv", 42 * MIB)
    locked = source / "Locked"

    real_scandir = os.scandir

    def scandir(path):
        if Path(path) == locked:
            raise PermissionError(13, "Permission denied")
        return real_scandir(path)

    monkeypatch.setattr(os, "scandir", scandir)

    plan = PrunePlanner().plan(source, media, MIB)

    assert [r.record.path.name for r in plan.results] == ["d.mkv"]
    assert [e.target for e in plan.deletions] == [source / "Drop"]
