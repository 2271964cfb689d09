#!/usr/bin/env python3
"""
CLI for the Dicenic script interpreter.

Usage:
    python -m dicenic run FILE [-c CONTEXT] [--seed N] [--json] [-v]
    python -m dicenic check FILE
    python -m dicenic tokens FILE

Examples:
    # Run a script against a character sheet
    python -m dicenic run attack.dice -c aria.yaml

    # Reproducible rolls, machine-readable output
    python -m dicenic run attack.dice -c aria.yaml --seed 42 --json

    # Stop at the first error instead of recovering
    python -m dicenic run attack.dice --no-recovery

A context file is YAML (or JSON, which YAML accepts) with any of the pool
keys and an optional `config` mapping:

    attributes:
      力量: 5
    role:
      name: Aria
    config:
      max_errors: 3
"""

import argparse
import json
import logging
import sys
import time
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

logger = logging.getLogger("dicenic.cli")

EXIT_OK = 0
EXIT_ERRORS = 1
EXIT_BAD_INPUT = 2


def read_source(path: str) -> Optional[str]:
    """Read a script file, reporting failures on stderr."""
    source_path = Path(path)
    if not source_path.exists():
        print(f"Error: File not found: {source_path}", file=sys.stderr)
        return None
    try:
        return source_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        print(f"Error: Cannot read {source_path}: {e}", file=sys.stderr)
        return None


def load_context(path: str) -> Dict[str, Any]:
    """
    Load a YAML/JSON context file.

    Returns:
        Mapping of pool name to variables, possibly with a `config` key

    Raises:
        ValueError: if the file is not a mapping or cannot be parsed
    """
    text = read_source(path)
    if text is None:
        raise ValueError(f"cannot read context file {path}")
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ValueError(f"invalid context file {path}: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"context file {path} must contain a mapping, got {type(data).__name__}")
    return data


def build_config(args, file_config: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Merge the context file's config with command-line flags (flags win)."""
    config = dict(file_config or {})
    # Warnings are printed below; the logger copy only shows with -v
    config.setdefault("log_warnings", args.verbose)
    if args.no_recovery:
        config["enable_recovery"] = False
    if args.max_errors is not None:
        config["max_errors"] = args.max_errors
    if args.strict_types:
        config["use_default_on_type_error"] = False
    if args.strict_division:
        config["strict_division"] = True
    return config


def cmd_run(args):
    """Execute a script and print its result."""
    from . import execute_script, DicenicError

    source = read_source(args.file)
    if source is None:
        return EXIT_BAD_INPUT

    pools: Dict[str, Any] = {}
    if args.context:
        try:
            pools = load_context(args.context)
        except ValueError as e:
            print(f"Error: {e}", file=sys.stderr)
            return EXIT_BAD_INPUT
    file_config = pools.pop("config", None)

    started = time.perf_counter()
    try:
        result = execute_script(source, pools, build_config(args, file_config),
                                filename=args.file, seed=args.seed)
    except ValueError as e:
        # Bad pools, pool values or config options
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_BAD_INPUT
    except DicenicError as e:
        print(e, file=sys.stderr)
        return EXIT_ERRORS
    elapsed = (time.perf_counter() - started) * 1000
    logger.debug("executed %s in %.3f ms", args.file, elapsed)

    if args.json:
        print(json.dumps(result.to_dict(), ensure_ascii=False, indent=2))
        return EXIT_OK if result.success else EXIT_ERRORS

    if result.success:
        print(result.result)
    else:
        print(f"Execution failed with {len(result.errors)} error(s):", file=sys.stderr)
        print(result.diagnostics.format_all(), file=sys.stderr)
        return EXIT_ERRORS

    if result.warnings:
        print(f"{len(result.warnings)} warning(s):", file=sys.stderr)
        for warning in result.warnings:
            print(f"  {warning}", file=sys.stderr)
    if args.verbose:
        print(f"Completed in {elapsed:.3f} ms", file=sys.stderr)

    return EXIT_OK


def cmd_check(args):
    """Check a script for syntax errors."""
    from . import validate_script, parse_script

    source = read_source(args.file)
    if source is None:
        return EXIT_BAD_INPUT

    ok, errors = validate_script(source, args.file)
    if not ok:
        print(f"Syntax check failed with {len(errors)} error(s):")
        for error in errors:
            print(error)
        return EXIT_ERRORS

    program = parse_script(source, args.file)
    print(f"OK: {Path(args.file).name} - {len(program.statements)} statement(s), no errors")
    return EXIT_OK


def cmd_tokens(args):
    """Dump the token stream of a script."""
    from . import tokenize, LexerError

    source = read_source(args.file)
    if source is None:
        return EXIT_BAD_INPUT

    try:
        tokens = tokenize(source, args.file)
    except LexerError as e:
        print(e, file=sys.stderr)
        return EXIT_ERRORS

    for token in tokens:
        loc = token.span.start
        print(f"{loc.line}:{loc.column}\t{token}\t{token.lexeme!r}")
    return EXIT_OK


def main(argv=None):
    parser = argparse.ArgumentParser(
        prog='python -m dicenic',
        description='Dicenic dice script interpreter',
    )

    subparsers = parser.add_subparsers(dest='action', required=True)

    # run command
    run_parser = subparsers.add_parser('run', help='Execute a script')
    run_parser.add_argument('file', help='Script source file')
    run_parser.add_argument('-c', '--context', metavar='FILE',
                            help='YAML/JSON file with variable pools and config')
    run_parser.add_argument('-v', '--verbose', action='store_true',
                            help='Debug logging and timing')
    run_parser.add_argument('--no-recovery', action='store_true',
                            help='Stop at the first error')
    run_parser.add_argument('--max-errors', type=int, metavar='N',
                            help='Error ceiling (default 10)')
    run_parser.add_argument('--strict-types', action='store_true',
                            help='Failed string-to-number conversions are errors')
    run_parser.add_argument('--strict-division', action='store_true',
                            help='Division by zero is an error')
    run_parser.add_argument('--seed', type=int, help='Seed for dice rolls')
    run_parser.add_argument('--json', action='store_true',
                            help='Print the result as JSON')

    # check command
    check_parser = subparsers.add_parser('check', help='Check a script for syntax errors')
    check_parser.add_argument('file', help='Script source file')

    # tokens command
    tokens_parser = subparsers.add_parser('tokens', help='Print the token stream')
    tokens_parser.add_argument('file', help='Script source file')

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if getattr(args, 'verbose', False) else logging.WARNING,
        format='%(levelname)s %(name)s: %(message)s',
    )

    if args.action == 'run':
        return cmd_run(args)
    elif args.action == 'check':
        return cmd_check(args)
    elif args.action == 'tokens':
        return cmd_tokens(args)
    else:
        parser.print_help()
        return 1


if __name__ == '__main__':
    sys.exit(main())
