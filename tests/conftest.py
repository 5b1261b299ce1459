"""Pytest configuration and fixtures."""

import pytest

UPLOAD_ENV = {
    "DIGITALOCEAN_BUCKET_NAME": "test-bucket",
    "DIGITALOCEAN_REGION_NAME": "fra1",
    "DIGITALOCEAN_ENDPOINT_NAME": "https://fra1.digitaloceanspaces.com",
    "DIGITALOCEAN_ACCESS_KEY": "access",
    "DIGITALOCEAN_SECRET_KEY": "secret",
    "DIGITALOCEAN_CDN": "https://cdn.example.com",
}

SETTINGS_ENV = (
    "BACKUP_CRON",
    "CLEAN_CRON",
    "BACKUP_SCRIPT",
    "RETENTION_DAYS",
    "SCHEDULER_TIMEZONE",
    "HEARTBEAT_SECONDS",
    "LOG_LEVEL",
    "PATH_PREFIX_CONTENT",
)


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Run every test in an empty directory with no agent variables set."""
    from backup_agent.config import get_settings

    monkeypatch.chdir(tmp_path)
    for name in (*UPLOAD_ENV, *SETTINGS_ENV):
        monkeypatch.delenv(name, raising=False)

    get_settings.cache_clear()
    yield tmp_path
    get_settings.cache_clear()


@pytest.fixture
def upload_env(monkeypatch):
    """Provide a complete storage configuration."""
    for name, value in UPLOAD_ENV.items():
        monkeypatch.setenv(name, value)
    return dict(UPLOAD_ENV)


class FakePaginator:
    def __init__(self, pages: list[dict]):
        self.pages = pages
        self.calls: list[dict] = []

    def paginate(self, **kwargs):
        self.calls.append(kwargs)
        return iter(self.pages)


class FakeS3:
    """Stand-in for a boto3 S3 client."""

    def __init__(self, objects: list[dict] | None = None, page_size: int = 1000):
        self.objects = objects or []
        self.page_size = page_size
        self.put_calls: list[dict] = []
        self.delete_calls: list[dict] = []
        self.paginator: FakePaginator | None = None
        self.put_error: Exception | None = None
        self.list_error: Exception | None = None
        self.delete_error: Exception | None = None
        # batches that succeed before delete_error is raised
        self.delete_error_after = 0
        self.delete_response: dict = {}

    def put_object(self, **kwargs):
        if self.put_error:
            raise self.put_error
        self.put_calls.append(kwargs)
        return {"ETag": '"abc"'}

    def get_paginator(self, name: str):
        assert name == "list_objects_v2"
        if self.list_error:
            raise self.list_error
        pages = [
            {"Contents": self.objects[i:i + self.page_size]}
            for i in range(0, len(self.objects), self.page_size)
        ] or [{"KeyCount": 0}]
        self.paginator = FakePaginator(pages)
        return self.paginator

    def delete_objects(self, **kwargs):
        if self.delete_error and len(self.delete_calls) >= self.delete_error_after:
            raise self.delete_error
        self.delete_calls.append(kwargs)
        return self.delete_response


@pytest.fixture
def s3_factory():
    """Build standalone fake S3 clients."""
    return FakeS3


@pytest.fixture
def fake_s3(monkeypatch):
    """Route every StorageClient to an in-memory fake S3 client."""
    from backup_agent.storage.client import StorageClient

    s3 = FakeS3()
    monkeypatch.setattr(StorageClient, "_build_client", staticmethod(lambda _config: s3))
    return s3
