#!/usr/bin/env python3
import argparse
import sys

from classfmt.orchestrator import run_once


def main():
    parser = argparse.ArgumentParser(description="Reorder the members of C# classes")
    parser.add_argument("files", nargs="+", help="C# source files to reformat in place")
    parser.add_argument("--config", help="Path to YAML config")
    parser.add_argument("--check", action="store_true", help="Report files that would change without writing them")
    parser.add_argument("--reset-groups", dest="reset_groups", action="store_true", help="Close [Header] groups at constructors, methods and nested types")
    parser.add_argument("--no-reset-groups", dest="reset_groups", action="store_false", help="Keep a [Header] group open until the next [Header]")
    parser.add_argument("--spacing", dest="spacing", action="store_true", help="Blank line after the last [SerializeField] of each group")
    parser.add_argument("--no-spacing", dest="spacing", action="store_false", help="Leave spacing between groups untouched")
    parser.add_argument("--newline", choices=["auto", "lf", "crlf"], help="Line ending for inserted line breaks")
    parser.set_defaults(reset_groups=None, spacing=None)
    args = parser.parse_args()

    overrides = {
        "reset_groups": args.reset_groups,
        "spacing": args.spacing,
        "newline": args.newline,
    }

    try:
        changed = run_once(args.files, config_path=args.config, overrides=overrides, check=args.check)
    except (OSError, ValueError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 2
    if args.check and changed:
        for path in changed:
            print(f"would reformat {path}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
