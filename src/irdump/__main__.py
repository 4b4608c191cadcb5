"""CLI entry point: run `irdump module.wat` or `python -m irdump module.wat`."""

import logging
import os
import sys
from pathlib import Path


def main(argv=None) -> int:
    import argparse
    from .ir.display import display, display_module
    from .shared.errors import LoadError
    from .ir.loader import load_module
    from .utils.config import DEFAULT_LOG_LEVEL, LOG_LEVEL_ENV
    from .utils.io_utils import read_source_file

    parser = argparse.ArgumentParser(prog="irdump", description="Print the debug dump of every function in a module.")
    parser.add_argument("file", type=Path, help="Path to a folded s-expression module description")
    parser.add_argument("--func", type=int, default=None, metavar="N", help="Only print function N")
    parser.add_argument("--log-level", type=str.upper, default=os.environ.get(LOG_LEVEL_ENV, DEFAULT_LOG_LEVEL),
                        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
                        help=f"Logging level (default: ${LOG_LEVEL_ENV} or {DEFAULT_LOG_LEVEL})")
    args = parser.parse_args(argv)

    logging.basicConfig(level=args.log_level, format="%(name)s: %(levelname)s: %(message)s")

    path = args.file.resolve()
    if not path.exists():
        sys.stderr.write(f"irdump: error: file not found: {path}\n")
        return 1
    if not path.is_file():
        sys.stderr.write(f"irdump: error: not a file: {path}\n")
        return 1

    try:
        source = read_source_file(path)
    except (OSError, UnicodeDecodeError) as e:
        sys.stderr.write(f"irdump: error: could not read file: {e}\n")
        return 1

    try:
        module = load_module(source, str(path))
    except LoadError as e:
        sys.stderr.write(f"irdump: error: {e}\n")
        return 1

    if args.func is None:
        out = display_module(module)
    else:
        if not 0 <= args.func < len(module.funcs):
            sys.stderr.write(f"irdump: error: no function {args.func} (module has {len(module.funcs)})\n")
            return 1
        out = display(module.funcs[module.funcs.id_at(args.func)])

    sys.stdout.write(out + "\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
