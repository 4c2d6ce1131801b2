"""Fetch the readings CSV from a Google Sheet export, falling back to the local file.

Exactly one remote attempt is made (when a sheet id is configured), followed
by at most one local read. Nothing is cached between loads.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import httpx

from bloodsugar.config import DashboardConfig
from bloodsugar.errors import LoadError


logger = logging.getLogger(__name__)

SHEET_EXPORT_URL = "https://docs.google.com/spreadsheets/d/{sheet_id}/export?format=csv&gid={gid}"

SOURCE_REMOTE = "remote"
SOURCE_LOCAL = "local"


class RemoteUnavailable(Exception):
    pass


@dataclass(frozen=True)
class LoadedCSV:
    text: str
    source: str
    location: str

    @property
    def source_label(self) -> str:
        return "Google Sheets" if self.source == SOURCE_REMOTE else "local file"


def sheet_csv_url(sheet_id: str, gid: int = 0) -> str:
    return SHEET_EXPORT_URL.format(sheet_id=sheet_id.strip(), gid=gid)


def _fetch_remote(client: httpx.Client, url: str, timeout: float) -> str:
    response = client.get(url, timeout=timeout, follow_redirects=True)
    response.raise_for_status()
    # Private sheets answer 200 with an HTML sign-in page instead of CSV.
    if "text/html" in response.headers.get("content-type", ""):
        raise RemoteUnavailable(f"{url} returned an HTML page instead of CSV; is the sheet shared publicly?")
    return response.text


def _read_local(path: Path) -> str:
    return path.read_text(encoding="utf-8-sig")


def fetch_csv_text(config: DashboardConfig, client: Optional[httpx.Client] = None) -> LoadedCSV:
    local_path = config.local_csv_path

    if config.remote_configured:
        url = sheet_csv_url(config.sheet_id or "", config.sheet_gid)
        logger.info("Attempting to fetch data from: %s", url)
        try:
            if client is None:
                with httpx.Client() as owned:
                    text = _fetch_remote(owned, url, config.timeout_seconds)
            else:
                text = _fetch_remote(client, url, config.timeout_seconds)
        except (httpx.HTTPError, RemoteUnavailable) as exc:
            logger.warning("Failed to load from Google Sheets (%s), trying local file %s", exc, local_path)
            try:
                text = _read_local(local_path)
            except (OSError, UnicodeDecodeError) as local_exc:
                raise LoadError(
                    "Failed to load CSV file from both Google Sheets and local source "
                    f"(remote: {exc}; local {local_path}: {local_exc})",
                    attempted=(url, str(local_path)),
                ) from local_exc
            logger.info("Successfully loaded data from local file %s", local_path)
            return LoadedCSV(text=text, source=SOURCE_LOCAL, location=str(local_path))
        logger.info("Successfully loaded data from Google Sheets")
        return LoadedCSV(text=text, source=SOURCE_REMOTE, location=url)

    logger.info("Attempting to fetch data from: %s", local_path)
    try:
        text = _read_local(local_path)
    except (OSError, UnicodeDecodeError) as exc:
        raise LoadError(f"Failed to load local CSV file {local_path}: {exc}", attempted=(str(local_path),)) from exc
    logger.info("Successfully loaded data from local file %s", local_path)
    return LoadedCSV(text=text, source=SOURCE_LOCAL, location=str(local_path))
