"""Shared fixtures: in-memory zip builder and a small deploy config."""

import io
import zipfile

import pytest

from lanchanto.config import Artifact, Config, Credential, Deploy


def build_zip(entries: dict[str, bytes | None],
              compression: int = zipfile.ZIP_DEFLATED) -> bytes:
    """Zip bytes with the given members. A None value makes a directory entry."""
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w", compression) as zf:
        for name, data in entries.items():
            if data is None:
                zf.writestr(zipfile.ZipInfo(name), b"")
            else:
                zf.writestr(zipfile.ZipInfo(name), data, compress_type=compression)
    return buf.getvalue()


@pytest.fixture
def make_zip():
    return build_zip


@pytest.fixture
def config(tmp_path) -> Config:
    return Config(
        credential=Credential(github_webhook_secret="s3cret",
                              github_token="ghs_token"),
        deploy=(
            Deploy(
                repository="octo/site",
                artifact=(
                    Artifact(name="site", target=str(tmp_path / "www")),
                    Artifact(name="docs", target=str(tmp_path / "docs")),
                ),
            ),
            Deploy(repository="octo/empty"),
        ),
    )
