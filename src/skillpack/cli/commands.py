"""
skillpack command line.

    skillpack list                         loaded skills in registry order
    skillpack bundles                      defined bundles and their members
    skillpack validate                     load + integrity checks
    skillpack resolve tier:core fp-x ...   print the resolved install order
    skillpack install --bundle full-core   write skills into the target dir

Exit codes: 0 success, 1 load/validation failure, 2 resolution failure,
3 I/O failure writing output.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import List, Optional

from loguru import logger

from skillpack import __version__
from skillpack.config.manager import ConfigManager
from skillpack.skills.errors import (
    InstallError,
    LoadError,
    MaterializationError,
    ResolutionError,
    ValidationError,
    ValidationErrorKind,
)
from skillpack.skills.installer import INSTALL_MODES, install
from skillpack.skills.loader import SkillLoader
from skillpack.skills.materializer import Materializer
from skillpack.skills.models import ResolvedBundle
from skillpack.skills.registry import Registry, SkillCatalog
from skillpack.skills.resolver import Resolver
from skillpack.skills.validator import validate

EXIT_OK = 0
EXIT_VALIDATION = 1
EXIT_RESOLUTION = 2
EXIT_IO = 3

_RESOLUTION_KINDS = frozenset({ValidationErrorKind.BUNDLE_CYCLE, ValidationErrorKind.UNKNOWN_BUNDLE})


def setup_logging(level: str = "WARNING", log_file: Optional[str] = None) -> None:
    """Configure logging."""
    logger.remove()

    logger.add(
        sys.stderr,
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>",
        level=level,
        colorize=True,
    )

    if log_file:
        logger.add(
            log_file,
            format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}",
            level="DEBUG",
            rotation="10 MB",
            retention="7 days",
        )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="skillpack",
        description="Resolve and install bundles of agent skill documents",
    )
    parser.add_argument("--config", type=str, default=None, help="Path to configuration file")
    parser.add_argument("--root", type=str, default=None, help="Skill source directory")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    parser.add_argument("--version", action="version", version=f"skillpack {__version__}")

    sub = parser.add_subparsers(dest="command")
    sub.required = True

    list_p = sub.add_parser("list", help="List loaded skills")
    list_p.add_argument("--json", action="store_true", dest="as_json", help="Output as JSON")

    bundles_p = sub.add_parser("bundles", help="List bundles and their resolved members")
    bundles_p.add_argument("--json", action="store_true", dest="as_json", help="Output as JSON")

    sub.add_parser("validate", help="Validate the skill catalog")

    for name, help_text in (("resolve", "Print the resolved install order"), ("install", "Install skills")):
        p = sub.add_parser(name, help=help_text)
        p.add_argument("selectors", nargs="*", help="Skill names or selectors (tier:core, tier<=core, bundle:x)")
        p.add_argument("--bundle", "-b", type=str, default=None, help="Bundle name from catalog.yaml")
        if name == "resolve":
            p.add_argument("--json", action="store_true", dest="as_json", help="Output as JSON")
        else:
            p.add_argument("--target", "-t", type=str, default=None, help="Installation directory")
            p.add_argument("--mode", choices=INSTALL_MODES, default=None, help="copy files or write manifest only")

    return parser


def _report_load_error(err: LoadError) -> None:
    print(f"error: {err}", file=sys.stderr)
    for failure in err.failures:
        print(f"  - {failure}", file=sys.stderr)


def _report_validation(errors: List[ValidationError]) -> None:
    print(f"error: {len(errors)} validation error(s)", file=sys.stderr)
    for err in errors:
        print(f"  - {err}", file=sys.stderr)


def _resolve_request(resolver: Resolver, registry: Registry, args: argparse.Namespace) -> ResolvedBundle:
    items = list(args.selectors)
    label = ""
    if args.bundle:
        bundle = registry.bundle(args.bundle)
        if bundle is None:
            raise ResolutionError(ResolutionError.UNKNOWN_BUNDLE, name=args.bundle)
        items.insert(0, f"bundle:{args.bundle}")
        label = bundle.display_name
    return resolver.resolve(items, label=label)


def _cmd_list(registry: Registry, args: argparse.Namespace) -> int:
    if args.as_json:
        print(json.dumps({"count": len(registry), "skills": registry.summary()}, indent=2, ensure_ascii=False))
        return EXIT_OK

    if not len(registry):
        print("No skills found.")
        return EXIT_OK

    for record in registry.records:
        print(f"{record.name}  [{record.tier.value}]")
        print(f"    {record.description}")
    return EXIT_OK


def _cmd_bundles(registry: Registry, args: argparse.Namespace) -> int:
    resolver = Resolver(registry)
    out = []
    for name, bundle in registry.bundles.items():
        try:
            members = list(resolver.resolve_bundle(name).names)
            error = None
        except ResolutionError as e:
            members, error = [], str(e)
        out.append({"name": name, "label": bundle.display_name, "members": members, "error": error})

    if args.as_json:
        print(json.dumps({"count": len(out), "bundles": out}, indent=2, ensure_ascii=False))
    else:
        for item in out:
            print(f"{item['name']}  ({item['label']})")
            if item["error"]:
                print(f"    error: {item['error']}")
            else:
                print(f"    {', '.join(item['members']) or '-'}")
    return EXIT_OK if all(item["error"] is None for item in out) else EXIT_RESOLUTION


def _cmd_validate(registry: Registry) -> int:
    errors = validate(registry)
    if errors:
        _report_validation(errors)
        return EXIT_VALIDATION
    print(f"OK: {len(registry)} skills, {len(registry.bundles)} bundles")
    return EXIT_OK


def _cmd_resolve(registry: Registry, args: argparse.Namespace) -> int:
    try:
        resolved = _resolve_request(Resolver(registry), registry, args)
    except ResolutionError as e:
        print(f"error: {e}", file=sys.stderr)
        return EXIT_RESOLUTION

    if args.as_json:
        print(json.dumps({"label": resolved.label, "skills": list(resolved.names)}, indent=2))
    else:
        for name in resolved.names:
            print(name)
    return EXIT_OK


def _cmd_install(registry: Registry, args: argparse.Namespace, config: ConfigManager) -> int:
    """
    Validate, resolve, materialize, then write.

    Bundle cycles and undefined bundle references found by validation exit
    with the resolution code, as `resolve` would; other findings exit 1.
    """
    errors = validate(registry)
    if errors:
        _report_validation(errors)
        if any(err.kind in _RESOLUTION_KINDS for err in errors):
            return EXIT_RESOLUTION
        return EXIT_VALIDATION

    try:
        resolved = _resolve_request(Resolver(registry), registry, args)
        records = Materializer(registry).materialize(resolved)
    except (ResolutionError, MaterializationError) as e:
        print(f"error: {e}", file=sys.stderr)
        return EXIT_RESOLUTION

    target = Path(args.target or config.get("install.target_dir", ".skills"))
    mode = args.mode or config.get("install.mode", "copy")
    try:
        lock_path = install(records, target, mode=mode, bundle=args.bundle)
    except InstallError as e:
        print(f"error: {e}", file=sys.stderr)
        return EXIT_IO
    except ValueError as e:
        print(f"error: {e}", file=sys.stderr)
        return EXIT_VALIDATION

    print(f"Installed {len(records)} skills into {target}")
    for record in records:
        print(f"  {record.name}  [{record.tier.value}]")
    print(f"Lock file: {lock_path}")
    return EXIT_OK


async def run(args: argparse.Namespace) -> int:
    config = ConfigManager(args.config)
    await config.load()

    if args.debug:
        config.set("app.debug", True)
        config.set("logging.level", "DEBUG")
    setup_logging(config.get("logging.level", "WARNING"), config.get("logging.file"))

    workers = config.get("catalog.load_workers", 4)
    try:
        workers = int(workers)
    except (TypeError, ValueError):
        print(f"error: catalog.load_workers must be an integer, got {workers!r}", file=sys.stderr)
        return EXIT_VALIDATION

    root = Path(args.root or config.get("catalog.root", "skills"))
    loader = SkillLoader(
        root,
        manifest_name=config.get("catalog.manifest"),
        max_workers=workers,
    )
    catalog = SkillCatalog(loader.load_registry)

    try:
        registry = await catalog.initialize()
    except LoadError as e:
        _report_load_error(e)
        return EXIT_VALIDATION

    command = args.command
    if command == "list":
        return _cmd_list(registry, args)
    if command == "bundles":
        return _cmd_bundles(registry, args)
    if command == "validate":
        return _cmd_validate(registry)
    if command == "resolve":
        return _cmd_resolve(registry, args)
    if command == "install":
        return _cmd_install(registry, args, config)

    print(f"Unknown command: {command}", file=sys.stderr)
    return EXIT_VALIDATION


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.command in ("resolve", "install") and not (args.selectors or args.bundle):
        parser.error(f"{args.command} needs skill selectors or --bundle")
    return asyncio.run(run(args))


def cli() -> None:
    """Console script entry point."""
    sys.exit(main())
