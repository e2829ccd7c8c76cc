from __future__ import annotations

import hashlib
import io
import shutil
import zipfile
from pathlib import Path
from typing import List

import requests
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)
from tqdm import tqdm

from common.config import yaml_config
from common.logger import get_logger
from ingestion.cleaners import normalize_page_text
from ingestion.document_models import SourceDocument

log = get_logger(__name__)


def _cache_key(url: str) -> str:
    """Stable hash key for a URL."""
    return hashlib.sha1(url.encode("utf-8")).hexdigest()


def load_pages_from_dir(root: Path, file_extension: str = ".md") -> List[SourceDocument]:
    """
    Recursively read every `file_extension` file under `root`.
    Page names are the relative path without the extension, using `/`.
    """
    root = Path(root)
    ext = file_extension.lower()
    paths = sorted(p for p in root.rglob("*") if p.is_file() and p.suffix.lower() == ext)
    log.info("Discovered %d %s files in %s", len(paths), ext, root)

    pages: List[SourceDocument] = []
    for p in tqdm(paths, desc="Loading pages"):
        raw = p.read_bytes()
        try:
            text = raw.decode("utf-8")
        except UnicodeDecodeError:
            log.warning("Invalid UTF-8 in %s; undecodable bytes replaced", p)
            text = raw.decode("utf-8", errors="replace")
        name = p.relative_to(root).with_suffix("").as_posix()
        pages.append(SourceDocument(name=name, content=normalize_page_text(text)))
    return pages


@retry(
    retry=retry_if_exception_type(requests.RequestException),
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=2, max=10),
    reraise=True,
)
def _fetch(url: str, timeout: int = 60) -> requests.Response:
    """Download URL with retry logic."""
    resp = requests.get(url, timeout=timeout)
    resp.raise_for_status()
    return resp


def download_and_extract_archive(url: str, cache_dir: Path | None = None) -> Path:
    """
    Download a zipped documentation build and extract it under the cache dir.
    Returns the extraction directory. Each run re-downloads so releases are picked up,
    and the previous extraction is removed so pages deleted upstream disappear too.
    """
    cache_dir = Path(cache_dir or yaml_config.app.cache_dir)
    target = cache_dir / f"archive_{_cache_key(url)}"

    log.info("Downloading archive from %s", url)
    resp = _fetch(url)
    shutil.rmtree(target, ignore_errors=True)
    target.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(io.BytesIO(resp.content)) as zf:
        zf.extractall(target)
    log.info("Extracted archive to %s", target)
    return target
