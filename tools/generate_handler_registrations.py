from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from handlerwire import (
    GeneratedUnit,
    HandlerRegistrationGenerator,
    HandlerWireError,
    SourceTypeCatalog,
    load_settings,
)

_DESCRIPTION = "Generate the request handler registration module for a source tree."
_AUTO_GENERATED_MARKER = "# <auto-generated/>"


def build_unit(*, source_root: Path) -> tuple[GeneratedUnit | None, list[str]]:
    settings = load_settings()
    catalog = SourceTypeCatalog.from_directory(source_root)
    result = HandlerRegistrationGenerator(settings).run(catalog)
    return result.unit, [str(diagnostic) for diagnostic in result.diagnostics]


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=_DESCRIPTION)
    parser.add_argument(
        "source_root",
        type=Path,
        help="Directory that would be on sys.path, for example src/.",
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=None,
        help="Directory to write the generated module to (defaults to source_root).",
    )
    parser.add_argument(
        "--check",
        action="store_true",
        help="Exit non-zero when the generated module is not up-to-date.",
    )
    parser.add_argument("--verbose", action="store_true", help="Log discovery details.")
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    try:
        unit, diagnostics = build_unit(source_root=args.source_root)
    except HandlerWireError as error:
        sys.stderr.write(f"{error}\n")
        return 2

    for line in diagnostics:
        sys.stderr.write(f"{line}\n")

    output_dir = args.output_dir if args.output_dir is not None else args.source_root
    output_path = output_dir / load_settings().unit_file_name
    current_text = output_path.read_text(encoding="utf-8") if output_path.exists() else None
    updated_text = unit.text if unit is not None else None

    if args.check:
        if current_text != updated_text:
            msg = (
                f"{output_path} is out of sync. "
                "Run: python -m tools.generate_handler_registrations <source_root>\n"
            )
            sys.stderr.write(msg)
            return 1
        return 0

    if unit is None:
        if current_text is not None and current_text.startswith(_AUTO_GENERATED_MARKER):
            output_path.unlink()
        return 0
    if current_text != updated_text:
        unit.write_to(output_dir)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
