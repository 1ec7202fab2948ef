"""CLI interface for dirsync."""

import logging
from pathlib import Path
from typing import Any, Optional

import click

from . import __version__
from .exceptions import DirsyncError
from .output import OutputFormatter
from .sync import SyncEngine, SyncPair, SyncResult, load_sync_pairs_from_json

logger = logging.getLogger(__name__)


@click.group()
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output")
@click.option("--json", is_flag=True, help="Output the sync summary in JSON format")
@click.option("--debug", is_flag=True, help="Enable debug logging output")
@click.version_option(version=__version__, prog_name="dirsync")
@click.pass_context
def main(ctx: Any, quiet: bool, json: bool, debug: bool) -> None:
    """dirsync - Mirror a directory tree into another one."""
    ctx.ensure_object(dict)
    ctx.obj["out"] = OutputFormatter(json_output=json, quiet=quiet)
    ctx.obj["debug"] = debug

    if debug:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%H:%M:%S",
        )
        logging.getLogger("dirsync").setLevel(logging.DEBUG)
    else:
        logging.basicConfig(level=logging.WARNING)


@main.command()
@click.argument(
    "source", type=click.Path(exists=True, file_okay=False, path_type=Path)
)
@click.argument("destination", type=click.Path(path_type=Path))
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="List every entry added during an initial copy",
)
@click.option(
    "--exclude",
    "-x",
    multiple=True,
    metavar="PATTERN",
    help="Glob pattern of relative paths to ignore (can be repeated)",
)
@click.option(
    "--listfile",
    "-l",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Write the absolute paths of added/changed entries to this file",
)
@click.option(
    "--nofix-symlinks",
    is_flag=True,
    help="Keep absolute symlinks into the source tree as they are",
)
@click.option(
    "--skip-hidden",
    is_flag=True,
    help="Ignore files and directories starting with '.'",
)
@click.option(
    "--dry-run", is_flag=True, help="Show what would be done without syncing"
)
@click.pass_context
def sync(
    ctx: Any,
    source: Path,
    destination: Path,
    verbose: bool,
    exclude: tuple[str, ...],
    listfile: Optional[Path],
    nofix_symlinks: bool,
    skip_hidden: bool,
    dry_run: bool,
) -> None:
    """Mirror SOURCE into DESTINATION.

    Entries missing from DESTINATION are added, stale ones are updated and
    entries no longer present in SOURCE are removed. Files are compared by
    modification time and size only. Absolute symlinks pointing into SOURCE
    are rewritten as relative links afterwards.

    Examples:
        dirsync sync install build/install
        dirsync sync install build/install -x '*.pyc' -x 'tmp*'
        dirsync sync install build/install -l changed.txt
        dirsync sync install build/install --skip-hidden --dry-run
    """
    pair = SyncPair(
        source=source,
        destination=destination,
        exclude=list(exclude),
        exclude_dot_files=skip_hidden,
        verbose=verbose,
        listfile=listfile,
        fix_symlinks=not nofix_symlinks,
    )
    _sync_pairs(ctx, [pair], dry_run)


@main.command()
@click.argument(
    "config_file", type=click.Path(exists=True, dir_okay=False, path_type=Path)
)
@click.option(
    "--pair",
    "-p",
    "aliases",
    multiple=True,
    metavar="ALIAS",
    help="Only run the sync pair with this alias (can be repeated)",
)
@click.option(
    "--dry-run", is_flag=True, help="Show what would be done without syncing"
)
@click.pass_context
def run(
    ctx: Any, config_file: Path, aliases: tuple[str, ...], dry_run: bool
) -> None:
    """Run the sync pairs defined in CONFIG_FILE.

    CONFIG_FILE is a JSON file holding a list of sync pairs, or an object
    with a "syncPairs" list. Relative paths are resolved against the
    directory of the file.

    Examples:
        dirsync run dirsync.json
        dirsync run dirsync.json --pair docs --dry-run
    """
    out: OutputFormatter = ctx.obj["out"]

    try:
        pairs = load_sync_pairs_from_json(config_file)
    except DirsyncError as e:
        out.error(str(e))
        ctx.exit(1)
        return  # For type checker

    if aliases:
        known = {pair.alias for pair in pairs}
        unknown = [alias for alias in aliases if alias not in known]
        if unknown:
            out.error(f"Unknown sync pair(s): {', '.join(unknown)}")
            ctx.exit(1)
        pairs = [pair for pair in pairs if pair.alias in aliases]

    if not pairs:
        out.warning(f"No sync pairs found in {config_file}")
        return

    # An absent source would empty the destination, refuse before syncing
    for pair in pairs:
        if not pair.source.is_dir():
            out.error(f"Source is not a directory: {pair.source}")
            ctx.exit(1)

    _sync_pairs(ctx, pairs, dry_run)


def _sync_pairs(ctx: Any, pairs: list[SyncPair], dry_run: bool) -> None:
    """Sync each pair in order and report the results.

    Args:
        ctx: Click context
        pairs: Sync pairs to run
        dry_run: Only show what would be done
    """
    out: OutputFormatter = ctx.obj["out"]
    engine = SyncEngine(out)
    results: list[SyncResult] = []

    try:
        for index, pair in enumerate(pairs):
            if index > 0:
                out.print("")
            logger.debug("Running sync pair %s", pair)
            results.append(engine.sync_pair(pair, dry_run=dry_run))
    except KeyboardInterrupt:
        out.warning("\nSync cancelled by user")
        ctx.exit(130)
    except DirsyncError as e:
        out.error(str(e))
        ctx.exit(1)
    except OSError as e:
        out.error(f"Sync failed: {e}")
        ctx.exit(1)

    if out.json_output:
        if len(results) == 1:
            out.output_json(results[0].to_dict())
        else:
            out.output_json([result.to_dict() for result in results])


if __name__ == "__main__":
    main()
