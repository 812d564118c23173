# MIT License
#
# Copyright (c) 2025 Democratize Technology
#
# Permission is hereby granted, free of charge, to any person obtaining a copy
# of this software and associated documentation files (the "Software"), to deal
# in the Software without restriction, including without limitation the rights
# to use, copy, modify, merge, publish, distribute, sublicense, and/or sell
# copies of the Software, and to permit persons to whom the Software is
# furnished to do so, subject to the following conditions:
#
# The above copyright notice and this permission notice shall be included in all
# copies or substantial portions of the Software.
#
# THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND, EXPRESS OR
# IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF MERCHANTABILITY,
# FITNESS FOR A PARTICULAR PURPOSE AND NONINFRINGEMENT. IN NO EVENT SHALL THE
# AUTHORS OR COPYRIGHT HOLDERS BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER
# LIABILITY, WHETHER IN AN ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING FROM,
# OUT OF OR IN CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN THE
# SOFTWARE.

"""Command line interface over the settings tools."""

import argparse
import logging
import sys
import textwrap
from collections.abc import Sequence
from typing import Any

from . import __version__
from .config import load_tool_config
from .exceptions import EnvdeckError
from .formatting import SettingsFormatter
from .tools import (
    discover_settings,
    extract_env_spec,
    render_compose,
    render_json,
    render_k8s,
    render_raw,
    render_settings_list,
    render_yaml,
    write_env_template,
    write_markdown,
    write_values,
)

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ERROR = 2

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: str) -> None:
    logging.basicConfig(level=level, stream=sys.stderr, format=LOG_FORMAT)


def _spec(args: argparse.Namespace) -> Any:
    classes = discover_settings(args.modules, args.settings_dir)
    return extract_env_spec(classes, skip_dev_only=args.skip_dev)


def cmd_list(args: argparse.Namespace) -> int:
    print(render_settings_list(_spec(args)), end="")
    return EXIT_OK


def cmd_env(args: argparse.Namespace) -> int:
    path = write_env_template(_spec(args), args.output_dir)
    print(f"{path.name} written to {path}")
    return EXIT_OK


def cmd_md(args: argparse.Namespace) -> int:
    path = write_markdown(_spec(args), args.output_dir)
    print(f"{path.name} written to {path}")
    return EXIT_OK


def cmd_values(args: argparse.Namespace) -> int:
    path = write_values(_spec(args), args.output_dir)
    print(f"{path.name} written to {path}")
    return EXIT_OK


def cmd_compose(args: argparse.Namespace) -> int:
    print(render_compose(_spec(args)))
    return EXIT_OK


def cmd_k8s(args: argparse.Namespace) -> int:
    print(render_k8s(_spec(args)))
    return EXIT_OK


def cmd_json(args: argparse.Namespace) -> int:
    print(render_json(_spec(args), args.root, flat=args.flat, code=args.code))
    return EXIT_OK


def cmd_yaml(args: argparse.Namespace) -> int:
    print(render_yaml(_spec(args), args.root, flat=args.flat, code=args.code))
    return EXIT_OK


def cmd_raw(args: argparse.Namespace) -> int:
    print(render_raw(_spec(args)))
    return EXIT_OK


def cmd_check(args: argparse.Namespace) -> int:
    """Load every discovered settings class from the current environment."""
    classes = discover_settings(args.modules, args.settings_dir)
    results = []
    for cls in classes:
        try:
            cls.load()
        except EnvdeckError as e:
            results.append((cls, e))
        else:
            results.append((cls, None))

    report = SettingsFormatter().format_check_report(results)
    failed = any(error is not None for _, error in results)
    print(report, file=sys.stderr if failed else sys.stdout)
    return EXIT_ERROR if failed else EXIT_OK


def _add_structure_options(parser: argparse.ArgumentParser, default_root: str | None) -> None:
    parser.add_argument(
        "root",
        nargs="?",
        default=default_root,
        help=f"Optional root object name (default: {default_root})",
    )
    parser.add_argument(
        "--flat",
        action="store_true",
        help="Flatten the output under root (no group nesting)",
    )
    parser.add_argument(
        "--code",
        action="store_true",
        help="Key by the settings field name, not the environment variable",
    )


def build_parser() -> argparse.ArgumentParser:
    epilog = textwrap.dedent(
        """
        Examples:
          envdeck list
          envdeck -m myapp.settings env
          envdeck --skip-dev yaml config --flat
          envdeck check
        """,
    )
    parser = argparse.ArgumentParser(
        prog="envdeck",
        description="Document and check declarative settings classes",
        epilog=epilog,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "-m",
        "--module",
        dest="modules",
        action="append",
        default=None,
        help="Module defining settings classes (repeatable; default: ENVDECK_SETTINGS_MODULES)",
    )
    parser.add_argument(
        "--settings-dir",
        default=None,
        help="Directory of settings files scanned when no module is given",
    )
    parser.add_argument("--skip-dev", action="store_true", help="Leave out dev-only fields")

    sub = parser.add_subparsers(dest="cmd", required=True)

    sp = sub.add_parser("list", help="Display settings details")
    sp.set_defaults(func=cmd_list)

    for name, help_text, func in (
        ("env", 'Write ".env.template"', cmd_env),
        ("md", 'Write "SETTINGS.md"', cmd_md),
        ("values", 'Write "values.yaml"', cmd_values),
    ):
        sp = sub.add_parser(name, help=help_text)
        sp.add_argument("--output-dir", default=None, help="Target directory (default: project root)")
        sp.set_defaults(func=func)

    sp = sub.add_parser("compose", help="Display docker-compose style environment yaml")
    sp.set_defaults(func=cmd_compose)

    sp = sub.add_parser("k8s", help="Display kubernetes style env var structure")
    sp.set_defaults(func=cmd_k8s)

    sp = sub.add_parser("json", help="Display JSON settings structure")
    _add_structure_options(sp, None)
    sp.set_defaults(func=cmd_json)

    sp = sub.add_parser("yaml", help="Display YAML settings structure")
    _add_structure_options(sp, "settings")
    sp.set_defaults(func=cmd_yaml)

    sp = sub.add_parser("raw", help="Display the raw spec extracted from the settings classes")
    sp.set_defaults(func=cmd_raw)

    sp = sub.add_parser("check", help="Load every settings class and report invalid fields")
    sp.set_defaults(func=cmd_check)

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    formatter = SettingsFormatter()

    try:
        config = load_tool_config()
    except EnvdeckError as e:
        configure_logging("WARNING")
        print(formatter.format_error(e), file=sys.stderr)
        return EXIT_ERROR
    configure_logging(config.log_level)

    try:
        return args.func(args)
    except EnvdeckError as e:
        logger.debug("envdeck %s failed", args.cmd, exc_info=True)
        print(formatter.format_error(e), file=sys.stderr)
        return EXIT_ERROR
