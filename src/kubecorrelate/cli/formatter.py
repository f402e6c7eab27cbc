# src/kubecorrelate/cli/formatter.py
from rich.console import Console
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

from kubecorrelate.report.summary import CompareOutput, DiffSum, Summary


class KubeFormatter:
    """
    Rich rendering of a comparison: one panel per differing record followed
    by the summary table.
    """

    def __init__(self, console: Console):
        self.console = console

    def display_diff(self, diff: DiffSum):
        if not diff.has_diff():
            self.console.print(
                f"[dim]ℹ {diff.record_identity} matches {diff.correlated_template} exactly.[/dim]"
            )
            return

        syntax = Syntax(diff.diff_output.rstrip(), "diff", theme="monokai", line_numbers=False)
        self.console.print(Panel(
            syntax,
            title=f"Cluster CR: {diff.record_identity}",
            subtitle=f"Reference File: {diff.correlated_template}",
            border_style="yellow"
        ))

    def print_summary(self, summary: Summary):
        table = Table(title="KubeCorrelate Summary", show_header=True, header_style="bold magenta")
        table.add_column("Metric", style="cyan")
        table.add_column("Value", justify="right")
        table.add_row("CRs with diffs", f"{summary.num_diff_records}/{summary.total_matched}")
        table.add_row("Unmatched CRs", str(len(summary.unmatched_records)))
        table.add_row("Unused templates", str(len(summary.unused_templates)))
        self.console.print(table)

        for name in summary.unmatched_records:
            self.console.print(f"[bold red]✗ Unmatched:[/bold red] {name}")
        for name in summary.unused_templates:
            self.console.print(f"[yellow]○ Never matched:[/yellow] {name}")

    def render(self, output: CompareOutput, show_empty_diffs: bool = False):
        for diff in output.sorted_diffs():
            if show_empty_diffs or diff.has_diff():
                self.display_diff(diff)
        self.print_summary(output.summary)
