"""Mapping URLs to local paths, writing bodies to disk, and reading the mirror back as URLs."""

import os
from pathlib import Path, PurePosixPath
from typing import Callable, Iterable, Iterator

import httpx

from sitemirror.errors import CreateFileError, UnmappableUrlError, WriteFileError
from sitemirror.escape import escape_path, unescape_path
from sitemirror.urls import canonicalize, raw_path, raw_query

INDEX_FILE = "index.html"


def merge_file_name_and_query(url: httpx.URL) -> str | None:
    """
    File name for url: last path segment ("index.html" when empty),
    followed by "?<escaped query>" when the URL has a query.
    """
    if not url.host:
        return None
    file_name = raw_path(url).rsplit("/", 1)[-1] or INDEX_FILE
    query = raw_query(url)
    if query:
        return f"{file_name}?{escape_path(query)}"
    return file_name


def url_to_path(url: httpx.URL) -> PurePosixPath | None:
    """
    Relative path for url: <host><directory>/<file name>.
    None for URLs that cannot be split into host and path (mailto:, data:, ...).
    """
    file_name = merge_file_name_and_query(url)
    if file_name is None:
        return None
    directory = raw_path(url).rsplit("/", 1)[0]
    return PurePosixPath(f"{url.host}{directory}") / file_name


def output_path_for(output_dir: Path, url: httpx.URL) -> Path:
    """Absolute output path for url; an existing directory there gets an index.html inside it."""
    relative = url_to_path(url)
    if relative is None:
        raise UnmappableUrlError(f"Cannot map {url} to a local path")
    path = output_dir.joinpath(*relative.parts)
    try:
        # stat fails with ENAMETOOLONG for long escaped queries
        if path.is_dir():
            path = path / INDEX_FILE
    except OSError as e:
        raise CreateFileError(f"Failed to create file {path}: {e}") from e
    return path


def make_parent_dirs(path: Path) -> None:
    """
    Create the parent directories of path.
    A parent that already exists as a regular file is turned into a directory
    and the file moves inside it as index.html.
    """
    try:
        for parent in reversed(path.parents):
            if parent.is_file():
                holding = parent.with_name(parent.name + ".sitemirror-tmp")
                os.replace(parent, holding)
                parent.mkdir()
                os.replace(holding, parent / INDEX_FILE)
        path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise CreateFileError(f"Failed to create directory for {path}: {e}") from e


def write_stream(
    path: Path,
    chunks: Iterable[bytes],
    on_chunk: Callable[[int], None] | None = None,
) -> int:
    """Stream chunks into path, overwriting it. Returns the number of bytes written."""
    make_parent_dirs(path)
    try:
        f = open(path, "wb")
    except OSError as e:
        raise CreateFileError(f"Failed to create file {path}: {e}") from e
    written = 0
    with f:
        for chunk in chunks:
            try:
                f.write(chunk)
            except OSError as e:
                raise WriteFileError(f"Failed to write to file {path}: {e}") from e
            written += len(chunk)
            if on_chunk is not None:
                on_chunk(len(chunk))
    return written


def path_to_url(relative: PurePosixPath, origin: httpx.URL) -> httpx.URL:
    """
    Inverse of url_to_path for a path relative to the host directory.
    "index.html" maps back to the directory URL and a "?" suffix back to the query.
    """
    parts = list(relative.parts) or [""]
    name, sep, escaped = parts[-1].partition("?")
    parts[-1] = "" if name == INDEX_FILE else name
    text = f"{origin.scheme}://{origin.netloc.decode('ascii')}/" + "/".join(parts)
    if sep:
        text += "?" + unescape_path(escaped)
    return canonicalize(text)


def scan_existing(output_dir: Path, target: httpx.URL) -> Iterator[httpx.URL]:
    """
    Yield the URL of every file and directory already mirrored under target's host.
    Names that do not map back to a valid URL are skipped.
    """
    host_dir = output_dir / target.host
    if not host_dir.is_dir():
        return
    yield path_to_url(PurePosixPath(), target)
    for entry in sorted(host_dir.rglob("*")):
        relative = PurePosixPath(entry.relative_to(host_dir).as_posix())
        if entry.is_dir():
            relative = relative / INDEX_FILE
        try:
            url = path_to_url(relative, target)
        except (httpx.InvalidURL, UnicodeError):
            continue
        yield url
