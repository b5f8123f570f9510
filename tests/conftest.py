"""
Shared test fixtures and configuration.
"""

from pathlib import Path

import pytest

from zcr.adapters.mock import MockHookAdapter, MockRepositoryAdapter
from zcr.core.config.loader import Settings
from zcr.core.errors import NetworkError
from zcr.core.services.lifecycle import PackageManager
from zcr.core.services.manifest_ops import ManifestFetcher

MANIFEST_URL = "https://example.com/library/repo-list.zcr"

MANIFEST_TEXT = """\
# Zenit community repository
foo -> https://example.com/foo.git
# bar -> https://example.com/bar.git

hello -> https://example.com/hello.git
world -> https://example.com/world.git
this line has no separator
"""

UNPACK_OK = "#!/bin/sh\necho unpacked\n"
REMOVE_OK = "#!/bin/sh\necho removed\n"


class FakeHttp:
    """Stands in for ``http_get``: returns a body or raises."""

    def __init__(self, body: str | Exception = MANIFEST_TEXT):
        self.body = body
        self.calls: list[str] = []

    def __call__(self, url: str, timeout: float) -> bytes:
        self.calls.append(url)
        if isinstance(self.body, Exception):
            raise self.body
        return self.body.encode("utf-8")

    def go_offline(self) -> None:
        self.body = NetworkError("Failed to fetch repository list: offline")


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    """Keep ZCR_* variables from the developer's shell out of tests."""
    for var in (
        "ZCR_CONFIG",
        "ZCR_MANIFEST_URL",
        "ZCR_REGISTRY_ROOT",
        "ZCR_SCRATCH_PATH",
        "ZCR_LOG_FILE",
        "ZCR_LOG_LEVEL",
        "ZCR_LOG_FILE_LEVEL",
    ):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        manifest_url=MANIFEST_URL,
        registry_root=tmp_path / "registry",
        scratch_path=tmp_path / "scratch" / "repo-list.zcr",
        log_file=tmp_path / "zcr.log",
    )


@pytest.fixture
def http() -> FakeHttp:
    return FakeHttp()


@pytest.fixture
def repo() -> MockRepositoryAdapter:
    """Remotes for every package in MANIFEST_TEXT; ``hello`` has no hooks."""
    mock = MockRepositoryAdapter(auto_remotes=False)
    mock.add_remote(
        "https://example.com/foo.git",
        files={
            "README": "foo v1\n",
            "zcr-build-files/unpack.sh": UNPACK_OK,
            "zcr-build-files/remove.sh": REMOVE_OK,
        },
    )
    mock.add_remote("https://example.com/hello.git", files={"README": "hello\n"})
    mock.add_remote(
        "https://example.com/world.git",
        files={"zcr-build-files/unpack.sh": UNPACK_OK},
    )
    return mock


@pytest.fixture
def hooks(settings: Settings) -> MockHookAdapter:
    return MockHookAdapter(build_dir=settings.build_dir)


@pytest.fixture
def manager(settings, repo, hooks, http) -> PackageManager:
    fetcher = ManifestFetcher(
        settings.manifest_url,
        scratch_path=settings.scratch_path,
        getter=http,
    )
    return PackageManager(settings, repo=repo, hooks=hooks, fetcher=fetcher)


class Recorder:
    """Reporter that records (stage, message) pairs."""

    def __init__(self):
        self.events = []

    def __call__(self, stage, message="", **data):
        self.events.append((stage, message))

    @property
    def stages(self):
        return [stage.value for stage, _ in self.events]


@pytest.fixture
def recorder() -> Recorder:
    return Recorder()
