"""
CLI entrypoint for filetree_export package.
"""
import argparse
import sys
from pathlib import Path
from typing import List, Optional

from colorama import Fore, Style, just_fix_windows_console

from .core import (
    DEFAULT_OUTPUT_NAME,
    IGNORE_FILE_NAME,
    OutputError,
    WalkEvent,
    export_roots,
    validate_output_name,
    write_output,
)

_EVENT_COLORS = {
    "ignored": Fore.YELLOW,
    "patterns_missing": Fore.YELLOW,
    "read_error": Fore.RED,
    "root_failed": Fore.RED,
    "root_done": Fore.GREEN,
}

_EVENT_TEXT = {
    "ignored": "- Ignoring {path}",
    "ignore_file_found": "{path} found",
    "ignore_file_created": "Created {path} with default patterns",
    "patterns_loaded": "Loaded {message} from {path}",
    "patterns_missing": "! Could not read {path}: {message}",
    "read_error": "! Error reading directory {path}: {message}",
    "root_started": "Processing {path} …",
    "root_done": "Finished {path} ({message})",
    "root_failed": "! Error processing {path}: {message}",
}


def _echo(msg: str, color: str = "") -> None:
    print(f"{color}[filetree] {msg}{Style.RESET_ALL if color else ''}")


def console_observer(event: WalkEvent) -> None:
    template = _EVENT_TEXT.get(event.kind, "{kind} {path} {message}")
    _echo(
        template.format(kind=event.kind, path=event.path, message=event.message),
        _EVENT_COLORS.get(event.kind, ""),
    )


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="filetree-export",
        description="Write an indented file/folder listing of one or more directories.",
    )
    p.add_argument(
        "roots",
        nargs="*",
        type=Path,
        default=[Path(".")],
        help="Root directories to export (default: current directory)",
    )
    p.add_argument(
        "--out",
        default=DEFAULT_OUTPUT_NAME,
        help=f"Output file name, written into the first root (default: {DEFAULT_OUTPUT_NAME})",
    )
    p.add_argument(
        "--ignore-file",
        default=IGNORE_FILE_NAME,
        help=f"Name of the per-root ignore file (default: {IGNORE_FILE_NAME})",
    )
    p.add_argument(
        "--no-create-ignore",
        action="store_true",
        help="Do not create a default ignore file when a root has none",
    )
    p.add_argument(
        "--gitignore",
        action="store_true",
        help="Also leave out paths matched by each root's .gitignore",
    )
    p.add_argument("--stdout", action="store_true", help="Also print the listing")
    p.add_argument("-v", "--verbose", action="store_true", help="Verbose logging")
    return p.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> None:
    just_fix_windows_console()
    try:
        ns = _parse_args(argv)
        roots = [r.resolve() for r in ns.roots]
        observer = console_observer if ns.verbose else None

        try:
            validate_output_name(ns.out)
        except OutputError as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)

        result = export_roots(
            roots,
            ignore_file=ns.ignore_file,
            create_ignore=not ns.no_create_ignore,
            use_gitignore=ns.gitignore,
            observer=observer,
        )
        for failed in result.failed:
            print(
                f"Error processing {failed.name}: {failed.error}",
                file=sys.stderr,
            )

        if ns.stdout:
            print(result.text)

        try:
            out_path = write_output(result.text, roots[0], ns.out)
        except OutputError as e:
            print(f"Error: {e}", file=sys.stderr)
            if not ns.stdout:
                print(result.text)
            sys.exit(1)

        if ns.verbose:
            _echo(
                f"Done → {out_path}. {len(result.roots)} root(s) processed, "
                f"{len(result.failed)} failed.",
                Fore.GREEN,
            )

    except KeyboardInterrupt:
        print("\nCancelled.", file=sys.stderr)
        sys.exit(1)
    except Exception as e:
        print(f"Unexpected error: {e}", file=sys.stderr)
        sys.exit(1)

if __name__ == "__main__":
    main()
