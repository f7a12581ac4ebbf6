"""CLI entrypoint for the plzmap layout builder."""

from __future__ import annotations

import argparse
import logging
from typing import Sequence

from .config import AppConfig, load_config
from .contacts import format_contacts_lines, load_contact_directory, run_build_contacts
from .render import format_render_lines, run_render_map
from .util import ensure_directories, setup_logging
from .validate import Validator, format_report_lines

LOGGER = logging.getLogger("plzmap.cli")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="plzmap",
        description="Postal-code region map layout builder.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    def add_common(p: argparse.ArgumentParser) -> None:
        p.add_argument("--config", default="config.yaml", help="Path to YAML config.")
        p.add_argument("--verbose", action="store_true", help="Enable debug logs.")

    build_p = subparsers.add_parser("build", help="Validate, build contacts and lay out the map.")
    add_common(build_p)
    build_p.add_argument(
        "--preview",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Also render a PNG preview (defaults to output.write_png).",
    )

    validate_p = subparsers.add_parser("validate", help="Validate config and input files.")
    add_common(validate_p)

    contacts_build_p = subparsers.add_parser(
        "build-contacts",
        help="Validate the contact CSV and write the JSON directory.",
    )
    add_common(contacts_build_p)

    layout_p = subparsers.add_parser("layout", help="Compute the map layout and write artifacts.")
    add_common(layout_p)
    layout_p.add_argument(
        "--preview",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Also render a PNG preview (defaults to output.write_png).",
    )

    contacts_p = subparsers.add_parser("contacts", help="Print the contacts for one region code.")
    add_common(contacts_p)
    contacts_p.add_argument("--code", required=True, help="Two-digit region code.")

    return parser


def _load_and_setup(args: argparse.Namespace) -> AppConfig:
    cfg = load_config(args.config)
    setup_logging(cfg.paths.logs_dir / "plzmap.log", verbose=args.verbose)
    ensure_directories(cfg.paths.build_directories)
    return cfg


def _run_validate(cfg: AppConfig) -> int:
    report = Validator(cfg).run()
    for line in format_report_lines(report):
        LOGGER.info(line)
    return 0 if report.ok else 1


def _run_build_contacts(cfg: AppConfig) -> int:
    report = run_build_contacts(
        cfg.paths.contacts_csv,
        cfg.paths.contacts_json,
        required_roles=cfg.contacts.required_roles,
    )
    for line in format_contacts_lines(report):
        LOGGER.info(line)
    return 0 if report.ok else 1


def _run_layout(cfg: AppConfig, *, preview: bool | None) -> int:
    report = run_render_map(cfg, preview_png=preview)
    for line in format_render_lines(report):
        LOGGER.info(line)
    return 0 if report.ok else 1


def _run_contacts(cfg: AppConfig, *, code: str) -> int:
    normalized = code.strip().zfill(2)
    if len(normalized) != 2 or not normalized.isdigit():
        LOGGER.error("Region code must have two digits: %s", code)
        return 1
    directory = load_contact_directory(
        cfg.paths.contacts_json,
        required_roles=cfg.contacts.required_roles,
    )
    for contact in directory.contacts_for(normalized):
        LOGGER.info(
            "[%s] %s: %s, tel %s, mail %s",
            normalized,
            contact.role,
            contact.name,
            contact.tel,
            contact.mail,
        )
    return 0


def _run_build(cfg: AppConfig, *, preview: bool | None) -> int:
    LOGGER.info("Starting build pipeline.")

    validation = Validator(cfg).run()
    for line in format_report_lines(validation):
        LOGGER.info(line)
    if not validation.ok:
        LOGGER.error("Build aborted due to validation errors.")
        return 1

    if cfg.paths.contacts_csv.exists():
        if _run_build_contacts(cfg) != 0:
            LOGGER.error("Build aborted due to contact directory errors.")
            return 1
    else:
        LOGGER.info("No contact CSV at %s; skipping contact directory step.", cfg.paths.contacts_csv)

    if _run_layout(cfg, preview=preview) != 0:
        LOGGER.error("Build aborted due to layout errors.")
        return 1

    LOGGER.info("Build finished.")
    return 0


def _dispatch(args: argparse.Namespace) -> int:
    cfg = _load_and_setup(args)
    command = str(args.command)
    if command == "build":
        return _run_build(cfg, preview=args.preview)
    if command == "validate":
        return _run_validate(cfg)
    if command == "build-contacts":
        return _run_build_contacts(cfg)
    if command == "layout":
        return _run_layout(cfg, preview=args.preview)
    if command == "contacts":
        return _run_contacts(cfg, code=str(args.code))
    raise ValueError(f"Unknown command: {command}")


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    return _dispatch(args)


if __name__ == "__main__":
    raise SystemExit(main())
