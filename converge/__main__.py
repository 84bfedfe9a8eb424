import argparse
import logging
import sys

from rich.console import Console
from rich.markup import escape

from converge.__version__ import __version__
from converge.core.config import ConfigError, load_config
from converge.core.model import InvalidNodeError
from converge.core.rule import ConvergenceRule
from converge.managers import ManagerError, load_tree

EXIT_OK = 0
EXIT_CONFLICTS = 1
EXIT_ERROR = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="converge",
        description="Report artifacts that resolve to more than one version in a dependency tree.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--exclude", action="append", default=[], metavar="PATTERN",
                        help="groupId[:artifactId] exempt from convergence (repeatable, '*' wildcards)")
    parser.add_argument("--include", action="append", default=[], metavar="PATTERN",
                        help="groupId[:artifactId] to check; overrides every exclude (repeatable)")
    parser.add_argument("--unique-versions", action="store_true",
                        help="treat any second occurrence of an artifact as a conflict")
    parser.add_argument("--config", default="pyproject.toml",
                        help="file holding a [tool.converge] table (default: pyproject.toml)")
    parser.add_argument("--tree-file", metavar="FILE",
                        help="read `mvn dependency:tree` output instead of detecting the project")
    parser.add_argument("--check", action="store_true",
                        help="print the conflicts and exit non-zero instead of opening the UI")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging on stderr")
    return parser


def run_check(args, console: Console = None) -> int:
    console = console or Console()
    logging.basicConfig(
        stream=sys.stderr,
        level=logging.DEBUG if args.verbose else logging.ERROR,
        format="%(levelname)s - %(message)s",
    )

    try:
        config = load_config(args.config).merged(args.exclude, args.include, args.unique_versions)
        manager_name, root = load_tree(args.tree_file)
        result = ConvergenceRule(config).check(root)
    except (ConfigError, ManagerError, InvalidNodeError) as e:
        console.print(f"[bold red]Error:[/] {escape(str(e))}")
        return EXIT_ERROR

    for message in result.messages:
        console.print(escape(message), highlight=False)

    if result.passed:
        console.print(f"[green]No convergence errors[/] ({escape(manager_name)}: {root.artifact})")
        return EXIT_OK

    console.print(f"[bold red]{len(result.conflicts)} dependency convergence error(s)[/]")
    return EXIT_CONFLICTS


def main(argv=None):
    """ Entrypoint when is installed via pip """
    args = build_parser().parse_args(argv)

    if args.check:
        sys.exit(run_check(args))

    from converge.app import ConvergeApp

    app = ConvergeApp(args)
    app.run()

# Development mode
if __name__ == "__main__":
    main()
