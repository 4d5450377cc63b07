"""CLI sync driver: one-way sync of a local source tree into a VirtualFS root."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING

from virtualfs.config import Settings
from virtualfs.exceptions import NotEmptyError, VirtualFSError
from virtualfs.filesystem.content_store import hash_file
from virtualfs.fs import VirtualFS
from virtualfs.schemas.file import HASH_MD5, DirEntry, FileInfo, ReconcileAction
from virtualfs.services.datetime_service import parse_datetime

if TYPE_CHECKING:
    from collections.abc import Sequence

logger = logging.getLogger(__name__)


@dataclass
class SourceFile:
    """A file found while walking the source tree."""

    rel_path: str
    full_path: Path
    size: int
    mod_time: datetime


@dataclass
class SyncReport:
    """What one sync run did, per path."""

    added: list[str] = field(default_factory=list)
    updated: list[str] = field(default_factory=list)
    identical: list[str] = field(default_factory=list)
    deleted: list[str] = field(default_factory=list)
    removed_dirs: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


def scan_source(source_dir: Path) -> tuple[dict[str, SourceFile], list[str]]:
    """Walk source_dir, skipping hidden entries and symlinks.

    Returns (files by relative path, relative paths of directories).
    """
    files: dict[str, SourceFile] = {}
    dirs_found: list[str] = []
    for root, dirs, filenames in os.walk(source_dir):
        root_path = Path(root)
        dirs[:] = sorted(
            d for d in dirs if not d.startswith(".") and not (root_path / d).is_symlink()
        )
        for d in dirs:
            dirs_found.append((root_path / d).relative_to(source_dir).as_posix())
        for filename in sorted(filenames):
            if filename.startswith("."):
                continue
            full = root_path / filename
            if full.is_symlink():
                logger.debug("Skipping symlink %s", full)
                continue
            stat = full.stat()
            rel = full.relative_to(source_dir).as_posix()
            files[rel] = SourceFile(
                rel_path=rel,
                full_path=full,
                size=stat.st_size,
                mod_time=datetime.fromtimestamp(stat.st_mtime, tz=UTC),
            )
    return files, dirs_found


def _is_reserved(rel_path: str, suffix: str) -> bool:
    """True when any component of rel_path would shadow a tombstone marker."""
    return any(part.endswith(suffix) for part in rel_path.split("/"))


async def run_sync(vfs: VirtualFS, source_dir: Path, *, checksum: bool = True) -> SyncReport:
    """Make vfs mirror source_dir.

    Live paths that no longer exist in the source are tombstoned first and
    directories gone from the source are removed, so a path that switched
    between file and directory converges in one run. Source directories are
    then materialized and every source file is reconciled (identical files
    are skipped without a transfer). Per-path failures are collected in the
    report and do not stop the run.
    """
    report = SyncReport()
    files, dirs_found = scan_source(source_dir)
    source_dirs = set(dirs_found)

    suffix = vfs.settings.tombstone_suffix
    for rel_path in [p for p in (*dirs_found, *files) if p.endswith(suffix)]:
        logger.warning("Skipping %s: names ending in %r are reserved for markers", rel_path, suffix)
        report.skipped.append(rel_path)
    dirs_found = [d for d in dirs_found if not _is_reserved(d, suffix)]
    files = {p: f for p, f in files.items() if not _is_reserved(p, suffix)}

    for record in await vfs.live_files():
        if record.path in files:
            continue
        try:
            await vfs.mark_deleted(record.path)
        except (OSError, VirtualFSError) as exc:
            logger.error("Failed to delete %s: %s", record.path, exc)
            report.errors.append(record.path)
            continue
        report.deleted.append(record.path)

    # Children sort after their parents, so reversed order removes leaves first.
    for dir_path in reversed(await vfs.directories()):
        if dir_path in source_dirs:
            continue
        try:
            await vfs.remove_directory(dir_path)
        except NotEmptyError:
            logger.debug("Keeping directory %s: it still has live entries", dir_path)
            continue
        except (OSError, VirtualFSError) as exc:
            logger.error("Failed to remove directory %s: %s", dir_path, exc)
            report.errors.append(dir_path)
            continue
        report.removed_dirs.append(dir_path)

    for rel_path in dirs_found:
        try:
            await vfs.make_directory(rel_path)
        except (OSError, VirtualFSError) as exc:
            logger.error("Failed to create directory %s: %s", rel_path, exc)
            report.errors.append(rel_path)

    for rel_path, source_file in files.items():
        try:
            hashes = {HASH_MD5: hash_file(source_file.full_path)} if checksum else {}
            info = FileInfo(
                path=rel_path,
                size=source_file.size,
                mod_time=source_file.mod_time,
                hashes=hashes,
            )
            with open(source_file.full_path, "rb") as stream:
                result = await vfs.reconcile(info, stream)
        except (OSError, VirtualFSError) as exc:
            logger.error("Failed to sync %s: %s", rel_path, exc)
            report.errors.append(rel_path)
            continue
        if result.action is ReconcileAction.CREATE:
            report.added.append(rel_path)
        elif result.action is ReconcileAction.UPDATE:
            report.updated.append(rel_path)
        else:
            report.identical.append(rel_path)

    logger.info(
        "Sync finished: %d added, %d updated, %d identical, %d deleted, "
        "%d directories removed, %d skipped, %d errors",
        len(report.added),
        len(report.updated),
        len(report.identical),
        len(report.deleted),
        len(report.removed_dirs),
        len(report.skipped),
        len(report.errors),
    )
    return report


def _configure_logging(verbose: bool) -> None:
    """Configure CLI logging."""
    level = logging.DEBUG if verbose else logging.INFO
    fmt = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"
    logging.basicConfig(
        level=level,
        format=fmt,
        stream=sys.stderr,
        force=True,
    )
    # Quiet noisy libraries
    logging.getLogger("sqlalchemy.engine").setLevel(logging.INFO if verbose else logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)


def _print_report(report: SyncReport) -> None:
    print("Sync Summary:")
    print(f"  Added:     {len(report.added)}")
    print(f"  Updated:   {len(report.updated)}")
    print(f"  Identical: {len(report.identical)}")
    print(f"  Deleted:   {len(report.deleted)}")
    print(f"  Removed:   {len(report.removed_dirs)}")
    print(f"  Skipped:   {len(report.skipped)}")
    print(f"  Errors:    {len(report.errors)}")
    for f in report.added:
        print(f"    + {f}")
    for f in report.updated:
        print(f"    * {f}")
    for f in report.deleted:
        print(f"    - {f}")
    for f in report.removed_dirs:
        print(f"    - {f}/")
    for f in report.skipped:
        print(f"    ? {f}")
    for f in report.errors:
        print(f"    ! {f}")


async def _run(args: argparse.Namespace, settings: Settings) -> int:
    async with await VirtualFS.open(settings) as vfs:
        if args.command == "sync":
            source_dir = Path(args.source).resolve()
            if not source_dir.is_dir():
                print(f"Error: source is not a directory: {source_dir}")
                return 1
            report = await run_sync(vfs, source_dir, checksum=not args.no_checksum)
            _print_report(report)
            return 1 if report.errors else 0

        if args.command == "ls":
            for entry in await vfs.list(args.dir):
                if isinstance(entry, DirEntry):
                    print(f"d {'-':>12} {entry.path}/")
                else:
                    print(f"f {entry.size:>12} {entry.path}")
            return 0

        if args.command == "stat":
            record = await vfs.lookup(args.path)
            print(f"path:     {record.path}")
            print(f"size:     {record.size}")
            print(f"mod_time: {record.mod_time.isoformat()}")
            print(f"md5:      {record.hash(HASH_MD5) or '-'}")
            return 0

        if args.command == "touch":
            record = await vfs.set_mod_time(args.path, parse_datetime(args.time))
            print(f"{record.path}: {record.mod_time.isoformat()}")
            return 0

        if args.command == "rm":
            await vfs.mark_deleted(args.path)
            return 0

        if args.command == "mkdir":
            await vfs.make_directory(args.path)
            return 0

        if args.command == "rmdir":
            await vfs.remove_directory(args.path)
            return 0

    return 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="virtualfs-sync",
        description="Sync a local directory into a VirtualFS cache",
    )
    parser.add_argument(
        "--root", "-r", help="Root directory for content and metadata (default: from settings)"
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")

    subparsers = parser.add_subparsers(dest="command")
    sync_parser = subparsers.add_parser("sync", help="One-way sync from SOURCE")
    sync_parser.add_argument(
        "source", help="Source directory (names ending in the tombstone suffix are skipped)"
    )
    sync_parser.add_argument(
        "--no-checksum",
        action="store_true",
        help="Compare by size and modification time only",
    )
    ls_parser = subparsers.add_parser("ls", help="List one directory level")
    ls_parser.add_argument("dir", nargs="?", default="", help="Directory (default: root)")
    stat_parser = subparsers.add_parser("stat", help="Show the record of a live path")
    stat_parser.add_argument("path")
    touch_parser = subparsers.add_parser("touch", help="Set a path's modification time")
    touch_parser.add_argument("path")
    touch_parser.add_argument("time", help="Timestamp, e.g. '2026-02-02 22:21:29+00'")
    rm_parser = subparsers.add_parser("rm", help="Mark a path deleted")
    rm_parser.add_argument("path")
    mkdir_parser = subparsers.add_parser("mkdir", help="Create a directory")
    mkdir_parser.add_argument("path")
    rmdir_parser = subparsers.add_parser("rmdir", help="Remove an empty directory")
    rmdir_parser.add_argument("path")
    return parser


def main(argv: Sequence[str] | None = None) -> None:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.command is None:
        parser.print_help()
        sys.exit(2)

    _configure_logging(args.verbose)
    overrides: dict[str, object] = {}
    if args.root:
        overrides["root_directory"] = Path(args.root)
    if args.verbose:
        overrides["debug"] = True
    settings = Settings(**overrides)  # type: ignore[arg-type]

    try:
        code = asyncio.run(_run(args, settings))
    except (OSError, VirtualFSError, ValueError) as exc:
        print(f"Error: {exc}")
        sys.exit(1)
    sys.exit(code)


if __name__ == "__main__":
    main()
