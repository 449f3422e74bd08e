from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import List, Optional

from .config import load_config
from .csl.styles import list_styles
from .document import Document
from .errors import ShelfcaseError
from .logs import setup_logging
from .translators import format_for_path, list_formats


logger = logging.getLogger(__name__)


def _load(args: argparse.Namespace) -> Document:
    cfg = load_config(Path(args.config) if args.config else None)
    doc = Document(cfg)
    doc.open_document(args.input, format_id=args.input_format)

    coll = doc.collection
    print("=== LOAD ===")
    print("source     :", args.input)
    print("collection :", coll.title, f"({coll.type.value})")
    print("fields     :", len(coll.fields))
    print("entries    :", len(coll))
    print("warnings   :", len(doc.warnings))
    for w in doc.warnings[:10]:
        print(" -", w)
    if len(doc.warnings) > 10:
        print(" - ... (more)")
    print()
    return doc


def cmd_convert(args: argparse.Namespace) -> int:
    doc = _load(args)

    fmt = args.to or format_for_path(args.output)
    options = {}
    if fmt == "bibtex":
        if args.quote_style:
            options["quote_style"] = args.quote_style
        if args.expand_macros:
            options["expand_macros"] = True
    elif fmt == "bibliography":
        if args.style:
            options["style"] = args.style
        options["html"] = args.html
    elif fmt == "html" and args.template:
        options["template"] = args.template
    if args.formatted and fmt in ("bibtex", "html", "xlsx"):
        options["formatted"] = True

    if fmt == "xml":
        written = doc.save_document(args.output)
    else:
        written = doc.export(fmt, args.output, **options)

    print("=== EXPORT ===")
    print("format :", fmt)
    print("output :", written)
    if len(doc.warnings) > 0:
        print("warnings:", len(doc.warnings))
    print()
    return 0


def cmd_info(args: argparse.Namespace) -> int:
    doc = _load(args)
    coll = doc.collection

    print("=== FIELDS ===")
    for f in coll.fields:
        print(f"{f.name:<16} {f.type.name:<8} {f.title}")
    print()

    group = args.group or coll.default_group_field
    if group:
        index = coll.group_index(group)
        print(f"=== GROUPS ({group}) ===")
        for key, entries in index.items():
            print(f"{len(entries):>5}  {key}")
        print()

    if coll.borrowers:
        print("=== LOANS ===")
        for b in coll.borrowers:
            print(b.name, ":", len(b.loans))
        print()
    return 0


def cmd_styles(args: argparse.Namespace) -> int:
    print("=== STYLES ===")
    extra = Path(args.dir) if args.dir else None
    for s in list_styles(extra):
        print(f"{s.kind:<8} {s.selector:<24} {s.name}")
    print()
    return 0


def cmd_formats(args: argparse.Namespace) -> int:
    print("=== FORMATS ===")
    for fmt, caps in list_formats().items():
        modes = [m for m in ("import", "export") if caps[m]]
        print(f"{fmt:<14} {', '.join(modes)}")
    print()
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="shelfcase",
        description="Read a shelfcase collection (or an RIS file) and convert it to other formats.",
    )
    p.add_argument("--config", default=None, help="config.json to use instead of the one in the user data folder")
    p.add_argument("--log-level", default=None, help="level of the log file (default: from config)")
    p.add_argument("-v", "--verbose", action="store_true", help="also print info messages on the console")
    sub = p.add_subparsers(dest="command", required=True)

    c = sub.add_parser("convert", help="convert a collection to another format")
    c.add_argument("input", help="input file (.xml, .bc or .ris)")
    c.add_argument("output", help="output file")
    c.add_argument("--from", dest="input_format", default=None, choices=["xml", "ris"],
                   help="input format (default: from the extension)")
    c.add_argument("--to", default=None, choices=sorted(list_formats()),
                   help="output format (default: from the extension)")
    c.add_argument("--formatted", action="store_true", help="write formatted values instead of stored ones")
    c.add_argument("--quote-style", default=None, choices=["braces", "quotes"], help="(bibtex) value quoting")
    c.add_argument("--expand-macros", action="store_true", help="(bibtex) do not write @string macros")
    c.add_argument("--style", default=None, help="(bibliography) CSL style name or .csl path")
    c.add_argument("--html", action="store_true", help="(bibliography) write an HTML list")
    c.add_argument("--template", default=None, help="(html) XSLT template")
    c.set_defaults(func=cmd_convert)

    i = sub.add_parser("info", help="show the fields, groups and loans of a collection")
    i.add_argument("input")
    i.add_argument("--from", dest="input_format", default=None, choices=["xml", "ris"])
    i.add_argument("--group", default=None, help="field to group by (default: the collection's)")
    i.set_defaults(func=cmd_info)

    s = sub.add_parser("styles", help="list the available CSL styles")
    s.add_argument("--dir", default=None, help="extra folder of .csl files")
    s.set_defaults(func=cmd_styles)

    f = sub.add_parser("formats", help="list import and export formats")
    f.set_defaults(func=cmd_formats)

    return p


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    cfg_level = load_config(Path(args.config) if args.config else None).log_level
    setup_logging(args.log_level or cfg_level,
                  console_level=logging.INFO if args.verbose else logging.WARNING)
    try:
        return args.func(args)
    except (ShelfcaseError, KeyError) as e:
        logger.error("%s failed: %s", args.command, e)
        print("error:", e)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
