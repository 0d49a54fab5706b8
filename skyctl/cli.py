"""Command-line entry point: global options, configuration file and commands."""

from __future__ import annotations

import argparse
import logging
import os
import sys
from dataclasses import dataclass, field
from importlib.metadata import PackageNotFoundError, version
from typing import Any, Optional, Sequence

import yaml

from skyctl.completion import completion_script

log = logging.getLogger(__name__)

PROG = "swctl"
DEFAULT_CONFIG = "~/.skywalking.yml"
AUTO_COMPLETE_FLAG = "--auto_complete"

_USAGE_TEXT = """\
Commands in SkyWalking CLI are organized into two levels,
in the form of "swctl --option <level1> --option <level2> --option",
there are options in each level, which should follow right after
the corresponding command, take the following command as example:

    $ swctl --debug service list --start="2019-11-11" --end="2019-11-12"

where "--debug" is an option of "swctl", and since the "swctl" is
a top-level command, "--debug" is also called global option, and "--start"
is an option of the third level command "list", there is no option for the
second level command "service".
"""

# Global string options: (name, default, help).
_STRING_OPTIONS: tuple[tuple[str, str, str], ...] = (
    ("base-url", "http://127.0.0.1:12800/graphql", "base url of the OAP backend graphql service"),
    ("grpc-addr", "127.0.0.1:11800", "backend gRPC service address <host:port>"),
    ("username", "", "username of basic authorization"),
    ("password", "", "password of basic authorization"),
    (
        "authorization",
        "",
        "authorization header, such as 'Basic base64(username:password)' or 'Bearer jwt-token'; "
        "if set, --username and --password are ignored",
    ),
    (
        "display",
        "",
        "display style of the result, supported styles are: json, yaml, table, graph",
    ),
)

_CONFIG_KEYS = frozenset(name for name, _, _ in _STRING_OPTIONS) | {"timezone", "debug"}


@dataclass(frozen=True)
class _Command:
    name: str
    aliases: tuple[str, ...] = ()
    children: tuple["_Command", ...] = field(default_factory=tuple)

    def child(self, word: str) -> Optional["_Command"]:
        return next(
            (c for c in self.children if word == c.name or word in c.aliases), None
        )


_TREE = _Command(
    PROG,
    children=(
        _Command(
            "completion",
            children=(_Command("bash", ("b",)), _Command("powershell", ("p",))),
        ),
    ),
)

_GLOBAL_FLAGS = (
    "--config",
    *(f"--{name}" for name, _, _ in _STRING_OPTIONS),
    "--timezone",
    "--debug",
    "--help",
    "--version",
)


def _version() -> str:
    try:
        return version("skyctl")
    except PackageNotFoundError:
        return "dev"


def expand_path(path: str) -> str:
    """Expand a leading ``~`` and environment variables in ``path``."""
    return os.path.expandvars(os.path.expanduser(path))


def load_config(path: str) -> dict[str, Any]:
    """Read global option values from a YAML file; a missing file gives ``{}``."""
    try:
        with open(path, encoding="utf-8") as handle:
            text = handle.read()
    except FileNotFoundError:
        log.debug("open %s no such file, skip loading configuration file", path)
        return {}
    log.debug("Using configurations:\n%s", text)
    data = yaml.safe_load(text)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"configuration file {path} must hold a mapping of options")
    return data


def build_parser() -> argparse.ArgumentParser:
    """Build the parser for the global options and the commands."""
    parser = argparse.ArgumentParser(
        prog=PROG,
        description="The CLI (Command Line Interface) for Apache SkyWalking.",
        epilog=_USAGE_TEXT,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {_version()}")
    parser.add_argument(
        "--config",
        default=DEFAULT_CONFIG,
        metavar="path",
        help="file path of the default configurations",
    )
    for name, default, help_text in _STRING_OPTIONS:
        parser.add_argument(f"--{name}", default=default, help=help_text)
    parser.add_argument(
        "--timezone",
        default=None,
        help="timezone where --start and --end are based, in the form of +0800",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        default=False,
        help="enable debug mode, will print more detailed information at runtime",
    )

    commands = parser.add_subparsers(dest="command", metavar="<command>")
    completion = commands.add_parser(
        "completion", help="Output shell completion code for bash and powershell"
    )
    shells = completion.add_subparsers(dest="shell", metavar="<shell>")
    for shell in ("bash", "powershell"):
        sub = shells.add_parser(
            shell,
            aliases=[shell[0]],
            help=f"Output shell completion code for {shell}",
        )
        sub.add_argument("parameters", nargs="*")
    return parser


def _parse_options(argv: Sequence[str]) -> argparse.Namespace:
    """Parse ``argv``; values from the configuration file fill in omitted options."""
    pre = argparse.ArgumentParser(add_help=False)
    pre.add_argument("--config", default=DEFAULT_CONFIG)
    config_path = expand_path(pre.parse_known_args(list(argv))[0].config)

    parser = build_parser()
    config = load_config(config_path)
    parser.set_defaults(
        **{
            key.replace("-", "_"): value
            for key, value in config.items()
            if key in _CONFIG_KEYS
        }
    )
    options = parser.parse_args(list(argv))
    options.config = config_path
    return options


def _suggestions(words: Sequence[str]) -> list[str]:
    node = _TREE
    for word in words:
        if word.startswith("-"):
            continue
        child = node.child(word)
        if child is None:
            break
        node = child
    if words and words[-1].startswith("-"):
        return list(_GLOBAL_FLAGS) if node is _TREE else ["--help"]
    return [child.name for child in node.children]


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the command line and return the exit status."""
    args = list(sys.argv[1:] if argv is None else argv)

    if AUTO_COMPLETE_FLAG in args:
        words = [arg for arg in args if arg != AUTO_COMPLETE_FLAG]
        for suggestion in _suggestions(words):
            print(suggestion)
        return 0

    try:
        options = _parse_options(args)
    except (OSError, ValueError, yaml.YAMLError) as exc:
        print(f"{PROG}: {exc}", file=sys.stderr)
        return 1

    if options.debug:
        logging.basicConfig(level=logging.DEBUG)
        log.debug("Debug mode is enabled")

    if options.command is None:
        build_parser().print_help()
        return 0

    if options.command == "completion":
        if options.shell is None:
            print("usage: swctl completion {bash,powershell}")
            return 0
        sys.stdout.write(completion_script(options.shell))
        return 0

    print(f"{PROG}: unknown command {options.command}", file=sys.stderr)
    return 1