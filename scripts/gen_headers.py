#!/usr/bin/env python3
"""
gen_headers.py - wrapper header generator entry point

Generates the wrapper headers of one module from an extractor metamodel and
a Python rule configuration module exposing `configure(db)`.

Usage:
    python scripts/gen_headers.py --metamodel sample.json --typesystem bindings.sample
                                  [--output DIR] [--module NAME] [--avoid-protected-hack]
"""

import argparse
import importlib
import os
import sys

# Get paths
script_dir = os.path.dirname(os.path.abspath(__file__))
root_dir = os.path.abspath(os.path.join(script_dir, '..'))

# Add scripts directory to path
sys.path.insert(0, script_dir)

from wrapgen import GeneratorOptions, HeaderGenerator, MetaModel, ReportHandler, TypeDatabase


def build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Generate wrapper headers')
    parser.add_argument('--metamodel', required=True,
                        help='Path to the extractor metamodel JSON')
    parser.add_argument('--typesystem', required=True,
                        help='Rule configuration module (e.g. bindings.sample)')
    parser.add_argument('--output', default=os.path.join(root_dir, 'gen/headers'),
                        help='Output root directory')
    parser.add_argument('--module', default='',
                        help='Module name (defaults to the metamodel module)')
    parser.add_argument('--package', default='',
                        help='Target package (sub-directory of the output root)')
    parser.add_argument('--license', default=None,
                        help='File whose text is put on top of every header')
    parser.add_argument('--avoid-protected-hack', action='store_true',
                        help='Do not redefine "protected"; emit protected forwarders instead')
    parser.add_argument('--qobject-extensions', action='store_true',
                        help='Emit meta-object hooks for QObject-like classes')
    parser.add_argument('--no-suppress-warnings', action='store_true',
                        help='Print warnings even when a suppression pattern matches')
    parser.add_argument('--verbose', action='store_true')
    return parser


def load_database(typesystem: str) -> TypeDatabase:
    """Build the type database from a rule configuration module"""
    db = TypeDatabase()
    config = importlib.import_module(typesystem)
    config.configure(db)
    return db


def main(argv: list[str] | None = None) -> int:
    args = build_argument_parser().parse_args(argv)

    license_comment = ''
    if args.license:
        with open(args.license, 'r') as f:
            license_comment = f.read()

    db = load_database(args.typesystem)
    db.suppress_warnings = not args.no_suppress_warnings

    options = GeneratorOptions(
        module_name=args.module,
        package=args.package,
        avoid_protected_hack=args.avoid_protected_hack,
        use_qobject_extensions=args.qobject_extensions,
        license_comment=license_comment,
        verbose=args.verbose,
    )
    report = ReportHandler(db, verbose=args.verbose)
    model = MetaModel.load(args.metamodel, db)

    gen = HeaderGenerator(db, model, options, report)
    failed = gen.generate_all(args.output)
    if failed:
        print(f'Error: {len(failed)} artifact(s) could not be written')
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
