"""Version information for NetCtl"""

__version__ = "1.1.0"
__version_info__ = (1, 1, 0)
__release_date__ = "2026-10-12"

# Version history
VERSION_HISTORY = [
    {
        "version": "1.1.0",
        "date": "2026-10-12",
        "changes": [
            "Added web API with session, roster, log and export endpoints",
            "Added strict tactical-token mode (NETCTL_STRICT_TOKENS)",
            "CSV import now accepts multi-line quoted messages",
            "Configurable callsign lookup URL and timeout",
        ]
    },
    {
        "version": "1.0.0",
        "date": "2026-09-01",
        "changes": [
            "Initial release",
            "Net sessions with check-in roster and communications log",
            "ICS-309 CSV and PDF export",
            "HamDB callsign lookup with local cache",
        ]
    }
]


def get_version():
    """Get current version string"""
    return __version__


def get_full_version():
    """Get version with release date"""
    return f"{__version__} ({__release_date__})"


def show_version_history():
    """Display version history"""
    from rich.console import Console
    from rich.table import Table

    console = Console()

    table = Table(title="Version History", show_header=True, header_style="bold magenta")
    table.add_column("Version", style="cyan")
    table.add_column("Date", style="green")
    table.add_column("Changes")

    for entry in VERSION_HISTORY:
        table.add_row(entry["version"], entry["date"], "\n".join(f"- {c}" for c in entry["changes"]))

    console.print(table)
