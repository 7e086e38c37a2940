"""Copy or convert the assets a document refers to into the output tree."""

from __future__ import annotations

import os
import posixpath
import re
import shutil
import subprocess
import tempfile
import threading
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Protocol, TextIO

from metablog.nodes import TCB, Block, Document, Figure, ListBlock, Section

_INKSCAPE_VERSION_RE = re.compile(r"Inkscape\s+(\d+)")


class AssetError(Exception):
    """An asset could not be located, copied or converted."""


class MemoryStore(Protocol):
    """In-memory output store used instead of the output directory."""

    def put_file(self, path: str, data: bytes, mod_time: float) -> None: ...

    def file_fresh(self, path: str, source_stat: os.stat_result) -> bool: ...


@dataclass(frozen=True)
class StatsSnapshot:
    fresh: int = 0
    copied: int = 0
    pdf_converted: int = 0
    skipped: int = 0


@dataclass
class Stats:
    """Thread-safe counters of asset outcomes."""

    fresh: int = 0
    copied: int = 0
    pdf_converted: int = 0
    skipped: int = 0
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def record_fresh(self) -> None:
        with self._lock:
            self.fresh += 1

    def record_copied(self) -> None:
        with self._lock:
            self.copied += 1

    def record_pdf_converted(self) -> None:
        with self._lock:
            self.pdf_converted += 1

    def record_skipped(self) -> None:
        with self._lock:
            self.skipped += 1

    def snapshot(self) -> StatsSnapshot:
        with self._lock:
            return StatsSnapshot(self.fresh, self.copied, self.pdf_converted, self.skipped)


def _to_slash(path: str) -> str:
    return path.replace(os.sep, "/") if os.sep != "/" else path


def _from_slash(path: str) -> str:
    return path.replace("/", os.sep) if os.sep != "/" else path


def _extension(path: str) -> str:
    base = path.rsplit("/", 1)[-1]
    dot = base.rfind(".")
    return base[dot:] if dot >= 0 else ""


def _clean_relative_path(path: str) -> str:
    if not path.strip():
        raise ValueError("empty path")
    slashed = path.replace("\\", "/")
    if slashed.startswith("/") or os.path.isabs(path) or os.path.splitdrive(path)[0]:
        raise ValueError("absolute path")
    clean = posixpath.normpath(slashed)
    if clean == "." or clean == ".." or clean.startswith("../"):
        raise ValueError("path leaves its directory")
    return _from_slash(clean)


def _is_within_dir(root: str, path: str) -> bool:
    root_abs = os.path.abspath(root)
    path_abs = os.path.abspath(path)
    try:
        return os.path.commonpath([root_abs, path_abs]) == root_abs
    except ValueError:
        return False


def _output_fresh(source_stat: os.stat_result, out_path: str) -> bool:
    try:
        out_stat = os.stat(out_path)
    except OSError:
        return False
    if os.path.isdir(out_path) or out_stat.st_size == 0:
        return False
    return source_stat.st_mtime_ns <= out_stat.st_mtime_ns


@dataclass
class Converter:
    """Places document assets under ``assets/`` of the output, or in a memory store."""

    source_root: str
    out_dir: str = ""
    asset_subdir: str = ""
    link_prefix: str = ""
    warnings: list[str] | None = None
    skip: bool = False
    log: TextIO | None = None
    log_lock: threading.Lock | None = None
    stats: Stats | None = None
    memory_store: MemoryStore | None = None

    def process(self, doc: Document) -> None:
        """Convert every figure image of ``doc``, recording output paths on the images."""
        if self.skip:
            return
        self._walk_blocks(doc.children)

    def convert_file(self, src: str) -> str:
        """Convert a single asset and return its link; "" when assets are skipped."""
        if self.skip:
            if self.stats is not None:
                self.stats.record_skipped()
            self._logf(f"Asset skipped by configuration: {src}\n")
            return ""
        return self._convert(src)

    def _walk_blocks(self, blocks: list[Block]) -> None:
        for block in blocks:
            if isinstance(block, (Section, TCB)):
                self._walk_blocks(block.children)
            elif isinstance(block, ListBlock):
                for item in block.items:
                    self._walk_blocks(item.blocks)
            elif isinstance(block, Figure):
                for image in block.all_images():
                    if image is None or not image.source_path:
                        continue
                    try:
                        out = self._convert(image.source_path)
                    except (AssetError, OSError) as exc:
                        self._warn(str(exc))
                    else:
                        image.output_path = _to_slash(out)

    def _convert(self, src: str) -> str:
        try:
            clean_native = _clean_relative_path(src)
        except ValueError as exc:
            raise AssetError(f"asset path not allowed {src}: {exc}") from exc
        clean = _to_slash(clean_native)
        source_path = os.path.normpath(os.path.join(self.source_root, clean_native))
        if not _is_within_dir(self.source_root, source_path):
            raise AssetError(f"asset path escapes source root: {src}")
        try:
            source_stat = os.stat(source_path)
        except OSError as exc:
            raise AssetError(f"asset not found {src}: {exc}") from exc

        ext = _extension(clean)
        is_pdf = ext.lower() == ".pdf"
        rel_out = clean[: len(clean) - len(ext)] + ".svg" if is_pdf else clean
        asset_rel = self._asset_rel_path(rel_out)
        link = self._link_path("assets", asset_rel)
        shown_source = _to_slash(source_path)

        if self.memory_store is not None:
            mem_rel = posixpath.normpath(posixpath.join("assets", asset_rel))
            if self.memory_store.file_fresh(mem_rel, source_stat):
                self._record("record_fresh")
                return link
            if is_pdf:
                self._record("record_pdf_converted")
                self._logf(f"Asset convert PDF to SVG in memory: {shown_source} -> {mem_rel}\n")
                try:
                    data = _convert_pdf_to_bytes(source_path)
                except (AssetError, OSError) as exc:
                    raise AssetError(f"convert pdf {src}: {exc}") from exc
            else:
                with open(source_path, "rb") as fh:
                    data = fh.read()
                self._record("record_copied")
                self._logf(f"Asset copy to memory: {shown_source} -> {mem_rel}\n")
            self.memory_store.put_file(mem_rel, data, source_stat.st_mtime)
            return link

        out_path = os.path.join(self.out_dir, "assets", _from_slash(asset_rel))
        os.makedirs(os.path.dirname(out_path), exist_ok=True)
        if _output_fresh(source_stat, out_path):
            self._record("record_fresh")
            return link
        shown_out = _to_slash(out_path)
        if is_pdf:
            self._record("record_pdf_converted")
            self._logf(f"Asset convert PDF to SVG: {shown_source} -> {shown_out}\n")
            try:
                _convert_pdf(source_path, out_path)
            except (AssetError, OSError) as exc:
                raise AssetError(f"convert pdf {src}: {exc}") from exc
        else:
            self._record("record_copied")
            self._logf(f"Asset copy: {shown_source} -> {shown_out}\n")
            shutil.copyfile(source_path, out_path)
        return link

    def _asset_rel_path(self, rel: str) -> str:
        subdir = _to_slash(self.asset_subdir).removeprefix("./").strip("/")
        rel = _to_slash(rel).removeprefix("./").strip("/")
        if not subdir:
            return rel
        return posixpath.normpath(posixpath.join(subdir, rel))

    def _link_path(self, *parts: str) -> str:
        pieces: list[str] = []
        prefix = _to_slash(self.link_prefix).rstrip("/")
        if prefix:
            pieces.append(prefix)
        pieces.extend(p for p in (_to_slash(part).strip("/") for part in parts) if p)
        return "/".join(pieces)

    def _record(self, method: str) -> None:
        if self.stats is not None:
            getattr(self.stats, method)()

    def _warn(self, msg: str) -> None:
        if self.warnings is not None:
            self.warnings.append(msg)

    def _logf(self, message: str) -> None:
        if self.log is None:
            return
        if self.log_lock is not None:
            with self.log_lock:
                self.log.write(message)
        else:
            self.log.write(message)


def _run(label: str, args: list[str]) -> None:
    result = subprocess.run(args, stdout=subprocess.PIPE, stderr=subprocess.STDOUT, check=False)
    if result.returncode != 0:
        output = result.stdout.decode("utf-8", errors="replace").strip()
        raise AssetError(f"{label}: exit status {result.returncode}: {output}")


def _convert_pdf(src: str, dst: str) -> None:
    try:
        os.remove(dst)
    except OSError:
        pass
    if binary := shutil.which("pdftocairo"):
        _run("pdftocairo", [binary, "-svg", src, dst])
    elif binary := shutil.which("mutool"):
        _run("mutool", [binary, "convert", "-o", dst, src])
    elif binary := shutil.which("inkscape"):
        _run("inkscape", [binary, *_inkscape_args(binary, src, dst)])
    else:
        raise AssetError("no PDF to SVG converter found")
    _validate_output(dst)


def _inkscape_args(binary: str, src: str, dst: str) -> list[str]:
    if _inkscape_major_version(binary) >= 1:
        return [src, "--export-type=svg", "--export-filename=" + dst]
    return [src, "--export-type=svg", "--export-file=" + dst]


@lru_cache(maxsize=None)
def _inkscape_major_version(binary: str) -> int:
    try:
        result = subprocess.run([binary, "--version"], capture_output=True, check=True)
    except (OSError, subprocess.CalledProcessError):
        return -1
    match = _INKSCAPE_VERSION_RE.search(result.stdout.decode("utf-8", errors="replace"))
    return int(match.group(1)) if match else -1


def _convert_pdf_to_bytes(src: str) -> bytes:
    with tempfile.TemporaryDirectory(prefix="metablog-asset-pdf-") as temp_dir:
        dst = os.path.join(temp_dir, "asset.svg")
        _convert_pdf(src, dst)
        with open(dst, "rb") as fh:
            return fh.read()


def _validate_output(path: str) -> None:
    if os.stat(path).st_size == 0:
        raise AssetError(f"converter wrote empty file {path}")