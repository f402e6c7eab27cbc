#!/usr/bin/env python3
"""
KUBECORRELATE CLI
-----------------
Primary interface: loads a reference directory and a set of observed
resources, correlates them and prints the diffs and the summary.

Exit status: 0 no differences, 1 differences found, 2 error.

Author: KubeCorrelate Team
Date: 2026-10-19
"""

import argparse
import logging
import sys
from typing import List, Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel

from kubecorrelate.cli.formatter import KubeFormatter
from kubecorrelate.core.engine import DEFAULT_CONCURRENCY, CompareEngine
from kubecorrelate.core.errors import KubeCorrelateError
from kubecorrelate.loaders.config import UserConfig, load_user_config
from kubecorrelate.loaders.records import load_records
from kubecorrelate.loaders.templates import load_reference
from kubecorrelate.report.exporter import OUTPUT_FORMATS, TEXT, ReportExporter

EXIT_OK = 0
EXIT_DIFFERENCES = 1
EXIT_ERROR = 2

console = Console()


class KubeCorrelateCLI:
    """
    CLI wrapper that translates user commands into engine actions.
    """

    def __init__(self, out: Optional[Console] = None):
        self.console = out or console
        self.parser = argparse.ArgumentParser(
            prog="kubecorrelate",
            description="KubeCorrelate - match Kubernetes resources against a reference template library",
            formatter_class=argparse.RawDescriptionHelpFormatter,
        )
        self._setup_args()

    def _setup_args(self):
        self.parser.add_argument("--version", action="version", version="kubecorrelate v1.0.0")
        subparsers = self.parser.add_subparsers(dest="command", metavar="Command")

        compare_parser = subparsers.add_parser("compare", help="🔍 Compare resources with a reference")
        compare_parser.add_argument("-r", "--reference", required=True, help="Path to the reference directory")
        compare_parser.add_argument("-f", "--filename", action="append", required=True,
                                    help="File or directory containing the resources to compare")
        compare_parser.add_argument("-R", "--recursive", action="store_true",
                                    help="Process directories passed with -f recursively")
        compare_parser.add_argument("-c", "--diff-config", default="", help="Path to the user config file")
        compare_parser.add_argument("--concurrency", type=int, default=DEFAULT_CONCURRENCY,
                                    help="Number of resources to process in parallel")
        compare_parser.add_argument("-A", "--all-resources", action="store_true",
                                    help="Report every resource that doesn't match a template")
        compare_parser.add_argument("-o", "--output", default="", choices=("",) + OUTPUT_FORMATS,
                                    help=f"Output format. One of: ({', '.join(OUTPUT_FORMATS)})")
        compare_parser.add_argument("--show-managed-fields", action="store_true",
                                    help="Include metadata.managedFields in the comparison")
        compare_parser.add_argument("--rich", action="store_true", help="Render text output with colors and panels")
        compare_parser.add_argument("-v", "--verbose", action="store_true", help="Increases the verbosity of the tool")

    def _configure_logging(self, verbose: bool):
        logging.basicConfig(
            level=logging.DEBUG if verbose else logging.WARNING,
            format="%(message)s",
            handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
            force=True,
        )

    def _compare(self, args: argparse.Namespace) -> int:
        reference = load_reference(args.reference, show_managed_fields=args.show_managed_fields)
        user_config = load_user_config(args.diff_config) if args.diff_config else UserConfig()
        engine = CompareEngine.from_reference(
            reference, user_config,
            concurrency=args.concurrency,
            diff_all=args.all_resources,
        )
        records = load_records(args.filename, recursive=args.recursive)
        output = engine.compare(records)

        if args.rich and args.output in ("", TEXT):
            KubeFormatter(self.console).render(output, show_empty_diffs=args.verbose)
        else:
            content = ReportExporter().export(output, args.output or TEXT, show_empty_diffs=args.verbose)
            self.console.file.write(content)
            self.console.file.flush()

        return EXIT_DIFFERENCES if output.has_differences() else EXIT_OK

    def run(self, argv: Optional[List[str]] = None) -> int:
        """Primary routing entry point."""
        args = self.parser.parse_args(argv)
        if args.command != "compare":
            self.parser.print_help()
            return EXIT_ERROR

        self._configure_logging(args.verbose)
        try:
            return self._compare(args)
        except (KubeCorrelateError, OSError) as e:
            self.console.print(Panel(f"[bold red]{escape(str(e))}[/bold red]", title="Error", border_style="red"))
            return EXIT_ERROR


def main():
    """Application entry point with interrupt handling."""
    try:
        sys.exit(KubeCorrelateCLI().run())
    except KeyboardInterrupt:
        console.print("\n[bold red]Terminated by user.[/bold red]")
        sys.exit(EXIT_ERROR)


if __name__ == "__main__":
    main()
