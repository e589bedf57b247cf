"""
CLI -- Command interface

Compiles a project directory the same way the playground does, without a
browser: the code, the sandbox document, or a JSON summary goes to stdout.

    reactcompile build                      # bundle @/entry from ./src
    reactcompile build --backend transpile --json
    reactcompile build --html > preview.html
    reactcompile capabilities --backend transpile
    reactcompile config --set compiler.backend=transpile
"""

import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

import orjson

from . import __version__
from .backends import BACKENDS, create_backend
from .config import Config, ConfigManager
from .core.externals import ExternalPackages
from .core.models import BuildResult, CompileOptions
from .core.paths import PathResolver
from .core.sources import FileSystemSourceProvider
from .errors import CompileError
from .sandbox.document import build_document
from .sandbox.executor import SandboxExecutor

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _components(config: Config, project_dir: Path):
    externals = ExternalPackages.from_mapping(config.externals.packages)
    resolver = PathResolver(
        alias_prefix=config.compiler.alias_prefix,
        externals=externals,
        extensions=config.compiler.extensions,
    )
    provider = FileSystemSourceProvider(project_dir, resolver=resolver)
    executor = SandboxExecutor(
        externals=externals,
        min_height=config.sandbox.min_height,
        background=config.sandbox.background,
        foreground=config.sandbox.foreground,
    )
    return externals, resolver, provider, executor


def cmd_build(args, manager: ConfigManager) -> int:
    config = manager.load()
    externals, resolver, provider, executor = _components(config, manager.project_dir)
    name = args.backend or config.compiler.backend
    backend = create_backend(
        name, provider, externals=externals, resolver=resolver, executor=executor
    )
    options = CompileOptions(
        entry_point=args.entry or config.compiler.entry_point,
        base_url=args.base_url or config.compiler.base_url,
        minify=args.minify,
        sourcemap=args.sourcemap,
    )

    async def run() -> BuildResult:
        await backend.initialize()
        return await backend.compile(options)

    try:
        result = asyncio.run(run())
    except CompileError as e:
        if args.json:
            print(orjson.dumps({"ok": False, "error": e.to_dict()}).decode("utf-8"))
        else:
            print(f"Error: {e.message}", file=sys.stderr)
        return 1

    for warning in result.warnings:
        print(f"Warning: {warning}", file=sys.stderr)

    if args.json:
        summary = {"ok": True, "backend": name, **result.to_dict()}
        print(orjson.dumps(summary, option=orjson.OPT_INDENT_2).decode("utf-8"))
    elif args.html:
        print(build_document(
            executor.script_for(result),
            externals,
            background=config.sandbox.background,
            foreground=config.sandbox.foreground,
        ))
    else:
        print(executor.script_for(result))
    return 0


def cmd_capabilities(args, manager: ConfigManager) -> int:
    config = manager.load()
    externals, resolver, provider, executor = _components(config, manager.project_dir)
    backend = create_backend(args.backend or config.compiler.backend, provider, externals=externals, resolver=resolver)
    capabilities = backend.get_capabilities()
    print(orjson.dumps(capabilities.to_dict(), option=orjson.OPT_INDENT_2).decode("utf-8"))
    return 0


def cmd_config(args, manager: ConfigManager) -> int:
    if args.set:
        if "=" not in args.set:
            print("Error: use --set KEY=VALUE (e.g. compiler.backend=transpile)", file=sys.stderr)
            return 1
        key, value = args.set.split("=", 1)
        error = manager.set(key.strip(), value.strip(), scope="user" if args.user else "project")
        if error:
            print(f"Error: {error}", file=sys.stderr)
            return 1
        print(f"Set {key.strip()} = {value.strip()}")
        return 0
    if args.key:
        value = manager.get(args.key)
        if value is None:
            print(f"Error: unknown key {args.key}", file=sys.stderr)
            return 1
        print(value)
        return 0
    print(manager.display())
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="reactcompile",
        description="reactcompile -- compile multi-file React projects for a sandboxed frame",
    )
    parser.add_argument(
        '--project', '-p',
        default=os.environ.get("REACTCOMPILE_PROJECT_PATH", "."),
        help='Project directory (default: REACTCOMPILE_PROJECT_PATH or current)'
    )
    parser.add_argument('--verbose', '-v', action='store_true', help='Debug logging')
    parser.add_argument(
        '--version', '-V',
        action='version',
        version=f'reactcompile {__version__}'
    )

    subparsers = parser.add_subparsers(dest='command', help='Commands')

    build = subparsers.add_parser('build', help='Compile the project')
    build.add_argument('--backend', '-b', choices=sorted(BACKENDS), help='Compile strategy')
    build.add_argument('--entry', '-e', help='Entry point (default: compiler.entry_point)')
    build.add_argument('--base-url', help='Alias root (default: compiler.base_url)')
    build.add_argument('--minify', action='store_true', help='Strip comments, compact runtime')
    build.add_argument('--sourcemap', action='store_true', help='Inline source map (bundle backend)')
    output = build.add_mutually_exclusive_group()
    output.add_argument('--html', action='store_true', help='Print the sandbox document')
    output.add_argument('--json', action='store_true', help='Print a JSON summary')
    build.set_defaults(handler=cmd_build)

    capabilities = subparsers.add_parser('capabilities', help='Show what a backend supports')
    capabilities.add_argument('--backend', '-b', choices=sorted(BACKENDS))
    capabilities.set_defaults(handler=cmd_capabilities)

    config = subparsers.add_parser('config', help='View or set configuration')
    config.add_argument('key', nargs='?', help='Print one value (e.g. compiler.backend)')
    config.add_argument('--set', metavar='KEY=VALUE', help='Set a value')
    config.add_argument('--user', action='store_true', help='Write to user config instead of project')
    config.set_defaults(handler=cmd_config)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the reactcompile CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    manager = ConfigManager(Path(args.project))
    config = manager.load()
    configure_logging("DEBUG" if args.verbose else config.logging.level)

    error = config.validate()
    if error and args.command != 'config':
        print(f"Error: invalid configuration: {error}", file=sys.stderr)
        return 1

    return args.handler(args, manager)


if __name__ == '__main__':
    sys.exit(main())
