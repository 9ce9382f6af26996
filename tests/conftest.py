import pytest
from pathlib import Path

MIB = 1024 * 1024


def make_file(path: Path, size: int) -> Path:
    """Creates a sparse file of exactly `size` bytes (no disk cost for large sizes)."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "wb") as f:
        f.truncate(size)
    return path


@pytest.fixture
def trees(tmp_path):
    """Returns empty (source, media) roots."""
    source = tmp_path / "torrents"
    media = tmp_path / "media"
    source.mkdir()
    media.mkdir()
    return source, media
