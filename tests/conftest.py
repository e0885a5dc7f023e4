"""Pytest configuration and shared fixtures."""

from pathlib import Path

import pytest

from tests.fixtures.video_generator import ensure_video_fixtures


@pytest.fixture(scope="session")
def fixtures_dir(tmp_path_factory) -> Path:
    """Create and return the fixtures directory for the session."""
    return tmp_path_factory.mktemp("fixtures")


@pytest.fixture(scope="session")
def video_fixtures(fixtures_dir) -> dict[str, Path]:
    """Generate all test videos once per session."""
    return ensure_video_fixtures(fixtures_dir)


@pytest.fixture
def animation_video(video_fixtures) -> Path:
    """10 frame yuv420p MPEG-4 video, 64x48 at 30 fps."""
    return video_fixtures["animation"]


@pytest.fixture
def still_video(video_fixtures) -> Path:
    """Video with exactly one frame."""
    return video_fixtures["still"]


@pytest.fixture
def alpha_video(video_fixtures) -> Path:
    """5 frame RGBA PNG-in-MOV video with a half transparent alpha channel."""
    return video_fixtures["alpha"]


@pytest.fixture
def audio_only_file(video_fixtures) -> Path:
    """WAV file without a video stream."""
    return video_fixtures["audio_only"]


@pytest.fixture
def not_media_file(video_fixtures) -> Path:
    """Plain text file."""
    return video_fixtures["not_media"]
