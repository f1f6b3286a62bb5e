# kvprofiler/exporters/stdout.py - Console output exporter
"""
Exports aggregated operation metadata to stdout in human-readable format.
"""

from typing import Dict, List, Optional
from colorama import Fore, Style, init
import logging

from kvprofiler.collector.metadata import AggregateMetadata
from kvprofiler.exporters.tab_data import (
    OPERATIONS_SECTION,
    STATISTICS_SECTION,
    build_tab_data,
)
from kvprofiler.utils.helpers import format_duration


# Initialize colorama
init(autoreset=True)


class StdoutExporter:
    """
    Exports profiling results to stdout with colored output.

    Error rows are shown in red and duplicate calls in yellow.
    """

    def __init__(self, use_colors: bool = True, show_stacks: bool = False):
        """
        Initialize the stdout exporter.

        Args:
            use_colors: Whether to use colored output
            show_stacks: Whether to print fault stack traces
        """
        self.use_colors = use_colors
        self.show_stacks = show_stacks
        self.logger = logging.getLogger(__name__)

    def _color(self, color: str) -> str:
        return color if self.use_colors else ""

    def _reset(self) -> str:
        return Style.RESET_ALL if self.use_colors else ""

    def _banner(self, title: str):
        print(f"\n{self._color(Fore.CYAN)}{'='*80}{self._reset()}")
        print(f"{self._color(Fore.CYAN)}{title}{self._reset()}")
        print(f"{self._color(Fore.CYAN)}{'='*80}{self._reset()}\n")

    def print_stats(self, stats: Dict):
        """
        Print overall statistics to stdout.

        Args:
            stats: Statistics dictionary from the tab data
        """
        self._banner("Key-Value Statistics")

        print(f"  Connections: {stats.get('connection_count', 0)}")
        print(f"  Operations: {stats.get('operation_count', 0)}")
        print(f"  Total Execution Time: {format_duration(stats.get('execution_time', 0.0) / 1000.0)}")
        print()

    def print_operations(self, table: List[list]):
        """
        Print one connection's operation table.

        Args:
            table: Header row followed by operation rows
        """
        print(f"{'#':<5} {'Type':<10} {'Keys':<30} {'Found':<7} "
              f"{'Duration':>12} {'Offset':>14} {'Async':<6}")
        print(f"{'-'*90}")

        for row in table[1:]:
            ordinal, op_type, keys, found, duration, offset, is_async, errors, status = row
            key_lines = keys.split("\n") if keys else [""]
            found_lines = found.split("\n") if found else [""]
            color = self._get_status_color(status)

            print(f"{color}{ordinal:<5} {op_type:<10} {key_lines[0]:<30} {found_lines[0]:<7} "
                  f"{duration:>9.2f} ms T+ {offset:>8.2f} ms {str(is_async):<6}{self._reset()}")

            for extra in range(1, max(len(key_lines), len(found_lines))):
                key = key_lines[extra] if extra < len(key_lines) else ""
                flag = found_lines[extra] if extra < len(found_lines) else ""
                print(f"{color}{'':<5} {'':<10} {key:<30} {flag:<7}{self._reset()}")

            if errors:
                self.print_errors(errors)

    def print_errors(self, errors: List[list]):
        """
        Print an operation's nested error table.

        Args:
            errors: Header row followed by [message] or [name, stack] rows
        """
        for row in errors[1:]:
            print(f"      {self._color(Fore.RED)}! {row[0]}{self._reset()}")
            if self.show_stacks and len(row) > 1 and row[1]:
                for line in row[1].rstrip().split("\n"):
                    print(f"        {line}")

    def print_metadata(self, metadata: AggregateMetadata) -> Optional[Dict]:
        """
        Print the complete diagnostics view for an aggregation result.

        Args:
            metadata: Aggregated metadata

        Returns:
            The tab data that was printed, or None if there was nothing to show
        """
        data = build_tab_data(metadata)
        if data is None:
            print(f"{self._color(Fore.YELLOW)}No operations captured{self._reset()}")
            return None

        self.print_stats(data[STATISTICS_SECTION][0])

        tables = data[OPERATIONS_SECTION][1:]
        connection_ids = [c.connection_id for c in metadata.connections.values() if c.operations]
        for connection_id, (table,) in zip(connection_ids, tables):
            self._banner(f"Connection: {connection_id}")
            self.print_operations(table)

        print()
        return data

    def _get_status_color(self, status: str) -> str:
        """
        Get color based on row status.

        Args:
            status: Row status ('error', 'warn' or '')

        Returns:
            Color code
        """
        if not self.use_colors:
            return ""

        if status == 'error':
            return Fore.RED
        elif status == 'warn':
            return Fore.YELLOW
        else:
            return Fore.GREEN
