"""Command-line entry point."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from .config import Options
from .errors import ParseError
from .pipeline import PHASES, generate, run_phase, run_pipeline, should_skip_file
from .serialize import to_json

logger = logging.getLogger(__name__)

SKIP_DIRS = frozenset({"__pycache__", "node_modules", "venv"})


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="branchgen",
        description="Generate pytest modules that exercise every branch of every method.",
    )
    parser.add_argument(
        "paths", nargs="*", metavar="PATH", help="source files or directories (default: stdin)"
    )
    parser.add_argument(
        "--stop-at",
        choices=PHASES,
        metavar="PHASE",
        help="dump phase output as JSON and stop: " + ", ".join(PHASES),
    )
    parser.add_argument(
        "-o", "--output", metavar="DIR", help="write test files into DIR (default: beside source)"
    )
    parser.add_argument("--stdout", action="store_true", help="print generated modules instead of writing")
    parser.add_argument("--module", metavar="NAME", help="import path of the class under test")
    parser.add_argument(
        "--stub-exception",
        action="append",
        default=[],
        metavar="TYPE",
        help="never stub TYPE (repeatable)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    return parser


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def is_test_file(path: Path) -> bool:
    name = path.name
    return name.startswith("test_") or name.endswith("_test.py") or name == "conftest.py"


def discover(paths: list[str]) -> list[Path]:
    """Source files to analyze, in sorted order. Explicit files are always kept."""
    found: list[Path] = []
    for raw in paths:
        path = Path(raw)
        if path.is_dir():
            for candidate in sorted(path.rglob("*.py")):
                parts = candidate.relative_to(path).parts[:-1]
                if any(p.startswith(".") or p in SKIP_DIRS for p in parts):
                    continue
                if not is_test_file(candidate):
                    found.append(candidate)
        else:
            found.append(path)
    return found


def module_name_for(path: Path) -> str:
    """Dotted import path, walking up through __init__.py packages."""
    path = path.resolve()
    parts = [] if path.stem == "__init__" else [path.stem]
    parent = path.parent
    while (parent / "__init__.py").exists():
        parts.insert(0, parent.name)
        if parent.parent == parent:
            break
        parent = parent.parent
    return ".".join(parts) or path.stem


def read_source(path: Path) -> str | None:
    """Read a UTF-8 source file; None (after reporting) on failure."""
    try:
        raw = path.read_bytes()
    except OSError:
        print("error: cannot open '" + str(path) + "'", file=sys.stderr)
        return None
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError:
        print("error: invalid utf-8 in '" + str(path) + "'", file=sys.stderr)
        return None


def write_output(text: str, path: Path) -> int:
    """Write output to file. Returns 0 on success, 1 on error."""
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text)
    except OSError:
        print("error: cannot write '" + str(path) + "'", file=sys.stderr)
        return 1
    logger.info("wrote %s", path)
    return 0


def run_stdin(args: argparse.Namespace, options: Options) -> int:
    raw = sys.stdin.buffer.read()
    try:
        source = raw.decode("utf-8")
    except UnicodeDecodeError:
        print("error: invalid utf-8 in input", file=sys.stderr)
        return 1
    if len(source.strip()) == 0:
        print("error: no input provided", file=sys.stderr)
        return 2
    exit_code, output = run_pipeline(source, args.module or "module", args.stop_at, options)
    if exit_code == 0 and output:
        print(output)
    return exit_code


def run_files(files: list[Path], args: argparse.Namespace, options: Options) -> int:
    exit_code = 0
    dumps: dict[str, object] = {}
    outputs: list[str] = []
    written: dict[Path, Path] = {}
    for path in files:
        source = read_source(path)
        if source is None:
            exit_code = 1
            continue
        if should_skip_file(source):
            logger.info("skipping %s", path)
            continue
        module_name = args.module or module_name_for(path)
        try:
            if args.stop_at is not None:
                dumps[str(path)] = run_phase(source, args.stop_at, module_name, options, str(path))
                continue
            generated = generate(source, module_name, options, str(path), path.name)
        except ParseError as e:
            print(
                "error:" + str(path) + ":" + str(e.lineno) + ":" + str(e.col) + ": " + e.msg,
                file=sys.stderr,
            )
            exit_code = 1
            continue
        for test in generated:
            if args.stdout:
                outputs.append(test.text)
                continue
            out_dir = Path(args.output) if args.output else path.parent
            target = out_dir / test.filename
            if target in written:
                print(
                    "error: '" + str(target) + "' for " + test.class_name + " in " + str(path)
                    + " already written from " + str(written[target]),
                    file=sys.stderr,
                )
                exit_code = 1
                continue
            written[target] = path
            if write_output(test.text, target) != 0:
                exit_code = 1
    if args.stop_at is not None and dumps:
        if len(files) == 1:
            print(to_json(next(iter(dumps.values()))))
        else:
            print(to_json(dumps))
    if outputs:
        print("\n\n".join(outputs))
    return exit_code


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)
    options = Options(stub_exceptions=list(args.stub_exception))
    if not args.paths:
        return run_stdin(args, options)
    files = discover(args.paths)
    if args.module and len(files) > 1:
        parser.error("--module requires a single source file")
    if not files:
        print("error: no source files found", file=sys.stderr)
        return 1
    return run_files(files, args, options)


if __name__ == "__main__":
    sys.exit(main())
