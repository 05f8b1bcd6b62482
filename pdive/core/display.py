from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich.align import Align
from rich.markup import escape
from rich import box
from datetime import datetime

from pdive.core.results import SCANNER_NAME

BANNER = """[bold cyan]
 ____  ____  _____     _______
|  _ \\|  _ \\|_ _\\ \\   / / ____|
| |_) | | | || | \\ \\ / /|  _|
|  __/| |_| || |  \\ V / | |___
|_|   |____/|___|  \\_/  |_____|
[/bold cyan]"""


class DisplayManager:
    """Console sink handed to every engine component."""

    def __init__(self, console=None):
        self.console = console or Console()

    def print_banner(self, config, targets):
        shown = ", ".join(targets[:3])
        if len(targets) > 3:
            shown += f" ... (+{len(targets) - 3} more)"

        meta = (
            f"[bold white]{SCANNER_NAME}[/bold white]\n"
            "[yellow]Dive deep into the network[/yellow]\n"
            "[bold red]For authorized security testing only![/bold red]"
        )
        self.console.print(Panel(Align.center(f"{BANNER}\n{meta}"), border_style="blue"))

        grid = Table.grid(padding=(0, 2))
        grid.add_column(style="bold")
        grid.add_column(style="green")
        grid.add_row(f"Targets ({len(targets)}):", escape(shown))
        grid.add_row("Output Directory:", escape(str(config.output_dir)))
        grid.add_row("Threads:", str(config.threads))
        grid.add_row("Discovery Mode:", config.mode.upper())
        self.console.print(grid)
        self.console.print()

    def log(self, message, level="INFO"):
        """Fancy logging with timestamps and icons"""
        timestamp = datetime.now().strftime("%H:%M:%S")
        colors = {"INFO": "blue", "SUCCESS": "green", "WARNING": "yellow", "ERROR": "red", "CRITICAL": "white on red", "DEBUG": "dim white"}
        icon = {"INFO": "[*]", "SUCCESS": "[+]", "WARNING": "[!]", "ERROR": "[-]", "CRITICAL": "[!!!]", "DEBUG": "[D]"}
        c = colors.get(level, "white")
        i = escape(icon.get(level, "[?]"))
        self.console.print(f"[grey50]{timestamp}[/grey50] [bold {c}]{i}[/bold {c}] {message}")

    def print_host_list(self, hosts):
        table = Table(title="[bold green]DISCOVERED HOSTS[/bold green]", show_header=True, header_style="bold green", box=box.SIMPLE)
        table.add_column("HOST", style="cyan")
        for host in sorted(hosts):
            table.add_row(escape(host))
        self.console.print(table)

    def print_scan_summary(self, state):
        """End-of-run table built from a ScanState snapshot."""
        self.console.print("\n")
        self.console.rule("[bold cyan]RECONNAISSANCE SUMMARY[/bold cyan]")

        grid = Table.grid(expand=True)
        grid.add_column()
        grid.add_column(justify="right")
        grid.add_row(
            f"[bold]Targets:[/bold] {escape(', '.join(state.scan_info.targets))}",
            f"[bold]Started:[/bold] {state.scan_info.start_time.strftime('%Y-%m-%d %H:%M')}",
        )
        grid.add_row(
            f"[bold]Hosts:[/bold] {len(state.hosts)}   [bold]Open Ports:[/bold] {state.total_ports}",
            f"[bold]Unresponsive:[/bold] {state.unresponsive_hosts}",
        )
        self.console.print(Panel(grid, border_style="cyan"))

        t_ports = Table(title="[bold green]NETWORK PERIMETER[/bold green]", show_header=True, header_style="bold green", expand=True, box=box.SIMPLE)
        t_ports.add_column("HOST", style="white")
        t_ports.add_column("PORT", style="cyan", width=8)
        t_ports.add_column("SERVICE", style="dim white", overflow="fold")

        if not state.hosts:
            t_ports.add_row("-", "-", "No live hosts discovered")
        for name in sorted(state.hosts):
            record = state.hosts[name]
            if not record.ports:
                t_ports.add_row(escape(name), "-", "no open ports")
                continue
            for p in sorted(record.ports, key=lambda x: x.port):
                t_ports.add_row(escape(name), f"{p.port}/tcp", escape(p.service or "unknown"))

        self.console.print(t_ports)
        self.console.rule("[bold cyan]END OF REPORT[/bold cyan]")
