"""Load charts from directories and archives, and write them back.

Archives are written reproducibly (sorted members, zeroed timestamps and
ownership, gzip header without mtime) so an unchanged chart always produces
the same digest.
"""

from __future__ import annotations

import gzip
import hashlib
import io
import logging
import shutil
import tarfile
from pathlib import Path, PurePosixPath

import requests
import yaml

from partner_charts.config.settings import settings
from partner_charts.errors import PackagingError, SourceError
from partner_charts.models.chart import Chart, ChartMetadata

logger = logging.getLogger(__name__)

CHART_FILE = "Chart.yaml"

# Prefer the C-accelerated YAML loader when available.
_YamlLoader = getattr(yaml, "CSafeLoader", yaml.SafeLoader)


def _parse_chart_yaml(raw: bytes, origin: str) -> ChartMetadata:
    try:
        data = yaml.load(raw.decode("utf-8"), Loader=_YamlLoader)
    except (yaml.YAMLError, UnicodeDecodeError) as e:
        raise PackagingError(f"Invalid Chart.yaml in {origin}: {e}") from e
    if not isinstance(data, dict) or not data.get("name"):
        raise PackagingError(f"Chart.yaml in {origin} has no chart name")
    return ChartMetadata.from_dict(data)


def render_chart_yaml(metadata: ChartMetadata) -> bytes:
    return yaml.safe_dump(metadata.to_dict(), sort_keys=False, default_flow_style=False).encode("utf-8")


def load_chart_dir(path: Path) -> Chart:
    """Load an unpacked chart directory."""
    chart_file = path / CHART_FILE
    if not chart_file.is_file():
        raise PackagingError(f"{path} does not contain a {CHART_FILE}")

    metadata = _parse_chart_yaml(chart_file.read_bytes(), str(path))
    files: dict[str, bytes] = {}
    for file_path in sorted(path.rglob("*")):
        if not file_path.is_file():
            continue
        rel = file_path.relative_to(path).as_posix()
        if rel == CHART_FILE:
            continue
        files[rel] = file_path.read_bytes()
    return Chart(metadata=metadata, files=files)


def _member_path(name: str) -> str | None:
    """Strip the archive's top-level directory; None for entries to skip."""
    parts = PurePosixPath(name).parts
    if len(parts) < 2:
        return None
    if parts[0] in ("/", "..") or ".." in parts:
        raise PackagingError(f"Refusing unsafe archive member path '{name}'")
    return PurePosixPath(*parts[1:]).as_posix()


def load_chart_archive(data: bytes, origin: str = "<archive>") -> Chart:
    """Load a chart from the bytes of a ``.tgz`` archive."""
    metadata: ChartMetadata | None = None
    files: dict[str, bytes] = {}
    try:
        with tarfile.open(fileobj=io.BytesIO(data), mode="r:gz") as tar:
            for member in tar.getmembers():
                if not member.isfile():
                    continue
                rel = _member_path(member.name)
                if rel is None:
                    continue
                extracted = tar.extractfile(member)
                if extracted is None:
                    continue
                content = extracted.read()
                if rel == CHART_FILE:
                    metadata = _parse_chart_yaml(content, origin)
                else:
                    files[rel] = content
    except (tarfile.TarError, OSError, EOFError) as e:
        raise PackagingError(f"Cannot read chart archive {origin}: {e}") from e

    if metadata is None:
        raise PackagingError(f"Chart archive {origin} does not contain a {CHART_FILE}")
    return Chart(metadata=metadata, files=files)


def load_chart_file(path: Path) -> Chart:
    try:
        data = path.read_bytes()
    except OSError as e:
        raise PackagingError(f"Cannot read {path}: {e}") from e
    return load_chart_archive(data, origin=str(path))


def load_chart_from_url(url: str) -> Chart:
    """Download a chart archive and load it."""
    logger.debug("Loading chart from %s", url)
    try:
        resp = requests.get(url, timeout=settings.http_timeout, headers=settings.http_headers)
        resp.raise_for_status()
    except requests.RequestException as e:
        raise SourceError(f"Unable to fetch chart archive {url}: {e}") from e
    return load_chart_archive(resp.content, origin=url)


def save_chart_dir(chart: Chart, target: Path) -> None:
    """Write a chart as an unpacked directory, replacing whatever is there."""
    try:
        if target.exists():
            shutil.rmtree(target)
        target.mkdir(parents=True)
        (target / CHART_FILE).write_bytes(render_chart_yaml(chart.metadata))
        for rel, content in chart.files.items():
            dest = target / rel
            dest.parent.mkdir(parents=True, exist_ok=True)
            dest.write_bytes(content)
    except OSError as e:
        raise PackagingError(f"Cannot write chart directory {target}: {e}") from e


def build_chart_archive(chart: Chart) -> bytes:
    """Return reproducible ``.tgz`` bytes for a chart."""
    members = {CHART_FILE: render_chart_yaml(chart.metadata), **chart.files}
    tar_buffer = io.BytesIO()
    with tarfile.open(fileobj=tar_buffer, mode="w") as tar:
        for rel in sorted(members):
            content = members[rel]
            info = tarfile.TarInfo(name=f"{chart.name}/{rel}")
            info.size = len(content)
            info.mode = 0o644
            info.mtime = 0
            info.uid = info.gid = 0
            info.uname = info.gname = ""
            tar.addfile(info, io.BytesIO(content))

    gz_buffer = io.BytesIO()
    with gzip.GzipFile(filename="", mode="wb", fileobj=gz_buffer, mtime=0) as gz:
        gz.write(tar_buffer.getvalue())
    return gz_buffer.getvalue()


def sha256_digest(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def file_digest(path: Path) -> str:
    h = hashlib.sha256()
    with path.open("rb") as f:
        for chunk in iter(lambda: f.read(65536), b""):
            h.update(chunk)
    return h.hexdigest()


def save_chart_archive(chart: Chart, target: Path) -> str:
    """Write a chart archive and return its sha256 digest.

    An existing archive with identical content is left untouched.
    """
    data = build_chart_archive(chart)
    digest = sha256_digest(data)
    try:
        if target.is_file() and file_digest(target) == digest:
            logger.debug("%s unchanged", target)
            return digest
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)
    except OSError as e:
        raise PackagingError(f"Cannot write chart archive {target}: {e}") from e
    return digest
