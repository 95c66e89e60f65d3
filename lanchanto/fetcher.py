"""
Artifact download from the GitHub REST API.

Two authenticated calls per deploy: list the workflow run's artifacts,
then download each wanted one (a zip) and hand it to the extractor.
Wanted artifacts missing from the listing are skipped; workflows do not
always produce every artifact a deploy declares. Nothing is retried.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Sequence

import httpx
from pydantic import ValidationError

from lanchanto.api_models import ArtifactEntry, ArtifactList
from lanchanto.config import Artifact
from lanchanto.errors import DownloadError, ListingError, MissingToken
from lanchanto.extractor import extract as extract_archive

logger = logging.getLogger(__name__)

USER_AGENT = "lanchanto"
API_VERSION = "2022-11-28"
DEFAULT_TIMEOUT = 30.0

Extract = Callable[[bytes, str], Awaitable[object]]


def _headers(token: str) -> dict:
    return {
        "Authorization": f"Bearer {token}",
        "User-Agent": USER_AGENT,
        "Accept": "application/vnd.github+json",
        "X-GitHub-Api-Version": API_VERSION,
    }


async def extract_in_thread(archive: bytes, target: str) -> None:
    """Default extract step: run the blocking unzip off the event loop."""
    await asyncio.to_thread(extract_archive, archive, target)


async def list_artifacts(client: httpx.AsyncClient, token: str,
                         url: str) -> dict[str, ArtifactEntry]:
    """GET the listing and index it by artifact name (first name wins)."""
    try:
        resp = await client.get(url, headers=_headers(token))
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        raise ListingError(f"listing request failed: {e}", url=url)
    if not resp.is_success:
        raise ListingError(f"listing returned HTTP {resp.status_code}", url=url)
    try:
        listing = ArtifactList.model_validate_json(resp.content)
    except ValidationError as e:
        raise ListingError(f"unexpected listing body: {e}", url=url)

    by_name: dict[str, ArtifactEntry] = {}
    for entry in listing.artifacts:
        by_name.setdefault(entry.name, entry)
    return by_name


async def download(client: httpx.AsyncClient, token: str, url: str) -> bytes:
    try:
        resp = await client.get(url, headers=_headers(token))
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        raise DownloadError(f"download failed: {e}", url=url)
    if not resp.is_success:
        raise DownloadError(f"download returned HTTP {resp.status_code}",
                            url=url)
    return resp.content


async def _fetch(client: httpx.AsyncClient, token: str, artifacts_url: str,
                 wanted: Sequence[Artifact], extract: Extract) -> list[str]:
    available = await list_artifacts(client, token, artifacts_url)

    deployed = []
    for artifact in wanted:
        entry = available.get(artifact.name)
        if entry is None:
            logger.debug("artifact %s not in listing, skipping", artifact.name)
            continue
        logger.info("downloading %s to %s", entry.name, artifact.target)
        data = await download(client, token, entry.archive_download_url)
        await extract(data, artifact.target)
        deployed.append(artifact.name)
    return deployed


async def fetch(token: str, repo_full_name: str, artifacts_url: str,
                wanted: Sequence[Artifact], *,
                client: httpx.AsyncClient | None = None,
                extract: Extract | None = None,
                timeout: float = DEFAULT_TIMEOUT) -> list[str]:
    """
    Download and extract every wanted artifact present in the listing.
    Returns the names deployed. The first failure aborts the rest and
    propagates (FetchError / ExtractError).

    `client` is used as-is when given (the caller owns it and its
    timeout); otherwise a client with `timeout` is opened for this call.
    """
    logger.info("downloading artifacts for %s, url=%s",
                repo_full_name, artifacts_url)

    if not token:
        raise MissingToken()
    if not artifacts_url:
        raise ListingError("empty artifacts url")
    if extract is None:
        extract = extract_in_thread

    if client is not None:
        return await _fetch(client, token, artifacts_url, wanted, extract)

    async with httpx.AsyncClient(timeout=timeout,
                                 follow_redirects=True) as own:
        return await _fetch(own, token, artifacts_url, wanted, extract)
