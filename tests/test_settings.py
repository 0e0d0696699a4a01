from pathlib import Path

import pytest

from sitemirror.fetcher import CHUNK_TIMEOUT
from sitemirror.settings import APP_USER_AGENT, Settings


def test_targets_are_canonicalized():
    settings = Settings(output_path="out", targets=["HTTP://Example.com:80", "https://example.org/docs/#x"])
    assert settings.output_path == Path("out")
    assert [str(t) for t in settings.targets] == ["http://example.com/", "https://example.org/docs/"]


def test_defaults():
    settings = Settings(output_path=Path("."))
    assert settings.targets == []
    assert settings.chunk_timeout == CHUNK_TIMEOUT == 3.0
    assert settings.idle_wait == 1.0
    assert settings.max_retries is None
    assert settings.user_agent == APP_USER_AGENT
    assert APP_USER_AGENT.startswith("sitemirror/")


def test_negative_retry_cap_rejected():
    with pytest.raises(ValueError):
        Settings(output_path=Path("."), max_retries=-1)
