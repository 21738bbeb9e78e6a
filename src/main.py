#!/usr/bin/env python3
"""
NetCtl - Net Control Logger
Main entry point for the command line interface

Features:
- Net sessions with a numbered check-in roster
- Communications log with tactical-call resolution
- ICS-309 CSV/PDF export and CSV import
- HamDB callsign lookup with local cache
- Environment Configuration (.env support)
"""

import os
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

# Add src to path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from __version__ import __version__, get_full_version
from commands import net
from commands.base import CommandResult, ResultStatus
from utils.env_config import get_config, initialize_config
from utils.logging_config import setup_logging

console = Console()


def _fail(result: CommandResult):
    """Print a failed result in red and exit 1"""
    console.print(f"[bold red]Error:[/bold red] {result.message}")
    if result.error and result.error != result.message:
        console.print(f"[dim]{result.error}[/dim]")
    sys.exit(1)


def _report(result: CommandResult) -> CommandResult:
    """Print a one-line outcome; exits on failure"""
    if not result.success:
        _fail(result)
    if result.status == ResultStatus.WARNING:
        console.print(f"[yellow]{result.message}[/yellow]")
    else:
        console.print(f"[green]{result.message}[/green]")
    return result


def _time(value: str) -> str:
    """HH:MM:SS portion of an ISO timestamp"""
    return value[11:19] if value and len(value) >= 19 else (value or '-')


def show_status(data: dict):
    """Render the session panel, roster and log"""
    session = data.get('session')
    if not session:
        console.print("[dim]No active session. Start one with 'netctl new'.[/dim]")
        return

    header = (
        f"[bold]{session['name']}[/bold]  [cyan]{session['status'].upper()}[/cyan]\n"
        f"Net control: {session['netControlOp']}"
        + (f" ({session['netControlName']})" if session.get('netControlName') else "")
        + (f"\nFrequency: {session['frequency']}" if session.get('frequency') else "")
        + f"\nElapsed: {data.get('elapsed', '00:00:00')}"
    )
    console.print(Panel(header, title="Net", border_style="cyan"))

    roster = Table(title="Roster", show_header=True, header_style="bold magenta")
    roster.add_column("#", style="cyan", justify="right")
    roster.add_column("Callsign", style="green")
    roster.add_column("Tactical")
    roster.add_column("Name")
    roster.add_column("Location")
    roster.add_column("Last TX", style="dim")
    roster.add_column("ID", style="dim")
    for p in data.get('participants', []):
        roster.add_row(str(p['checkInNumber']), p['callsign'], p.get('tacticalCall') or '',
                       p.get('name') or '', p.get('location') or '',
                       _time(p.get('lastTransmission')), p['id'][:8])
    console.print(roster)

    log_table = Table(title="Log", show_header=True, header_style="bold magenta")
    log_table.add_column("#", style="cyan", justify="right")
    log_table.add_column("Time", style="dim")
    log_table.add_column("From", style="green")
    log_table.add_column("To", style="green")
    log_table.add_column("Message")
    log_table.add_column("ID", style="dim")
    for e in data.get('logEntries', []):
        marker = " [bold yellow]*[/bold yellow]" if e.get('acknowledged') else ""
        log_table.add_row(str(e['entryNumber']), _time(e['time']), e['fromCallsign'],
                          e['toCallsign'], e['message'] + marker, e['id'][:8])
    console.print(log_table)


def _resolve_id(items: list, prefix: str, what: str) -> str:
    """Accept a full id or a unique prefix as shown in the tables"""
    matches = [item['id'] for item in items if item['id'].startswith(prefix)]
    if len(matches) == 1:
        return matches[0]
    if not matches:
        return prefix
    _fail(CommandResult.fail(f"Ambiguous {what} id '{prefix}'"))


def _write_output(data: dict, output):
    """Write exported content to a file, or stdout with '-'"""
    content = data['content']
    if output == '-':
        if isinstance(content, bytes):
            sys.stdout.buffer.write(content)
        else:
            sys.stdout.write(content + '\n')
        return
    path = Path(output) if output else Path(data['filename'])
    if isinstance(content, bytes):
        path.write_bytes(content)
    else:
        path.write_text(content, encoding='utf-8')
    console.print(f"[green]Wrote {path}[/green]")


@click.group()
@click.option('--data-dir', type=click.Path(file_okay=False), default=None,
              help='Session storage directory (env: NETCTL_DATA_DIR)')
@click.option('--strict-tokens', is_flag=True, default=False,
              help='Reject tactical renames that collide with another station')
@click.option('--debug', is_flag=True, help='Enable debug logging')
@click.version_option(__version__, prog_name='netctl')
@click.pass_context
def cli(ctx, data_dir, strict_tokens, debug):
    """NetCtl - net control logger for amateur radio nets"""
    config_result = initialize_config()

    setup_logging(level='DEBUG' if debug else get_config('LOG_LEVEL'),
                  log_file=get_config('LOG_FILE') or None)

    if not config_result['valid']:
        for error in config_result['errors']:
            console.print(f"[yellow]Config: {error}[/yellow]")

    # 'config' only reports settings and must not touch storage
    if ctx.invoked_subcommand != 'config':
        net.configure(data_dir=Path(data_dir) if data_dir else None,
                      strict_tokens=True if strict_tokens else None)


@cli.command()
@click.argument('name')
@click.argument('operator')
@click.option('--frequency', '-f', default='', help='Net frequency')
@click.option('--nc-name', default='', help='Net control operator name')
@click.option('--prepared-by', default='', help='ICS-309 "prepared by" name')
def new(name, operator, frequency, nc_name, prepared_by):
    """Create a pending net with OPERATOR as net control."""
    _report(net.create_session(name, operator, frequency=frequency,
                               net_control_name=nc_name, prepared_by=prepared_by))


@cli.command('open')
def open_net():
    """Open the pending net and start the clock."""
    _report(net.open_session())


@cli.command('close')
def close_net():
    """Close the active net."""
    _report(net.close_session())


@cli.command()
@click.argument('session_id')
def load(session_id):
    """Make a stored session current."""
    sessions = net.list_sessions().data['sessions']
    _report(net.load_session(_resolve_id(sessions, session_id, 'session')))


@cli.command()
def sessions():
    """List stored sessions, newest first."""
    result = net.list_sessions()
    table = Table(title="Sessions", show_header=True, header_style="bold magenta")
    table.add_column("ID", style="dim")
    table.add_column("Name", style="cyan")
    table.add_column("Net control", style="green")
    table.add_column("Started")
    table.add_column("Status")
    active = result.data['activeSessionId']
    for s in result.data['sessions']:
        name = f"{s['name']} [bold yellow]*[/bold yellow]" if s['id'] == active else s['name']
        table.add_row(s['id'][:8], name, s['netControlOp'], s['dateTime'][:16].replace('T', ' '),
                      s['status'])
    console.print(table)


@cli.command()
def status():
    """Show the current net, roster and log."""
    result = net.get_status()
    show_status(result.data)


@cli.command()
@click.argument('callsign')
@click.option('--tactical', '-t', default='', help='Tactical call')
@click.option('--name', '-n', default='', help='Operator name')
@click.option('--location', '-l', default='', help='Station location')
@click.option('--lookup/--no-lookup', default=False, help='Fill name/location from HamDB')
def checkin(callsign, tactical, name, location, lookup):
    """Check a station in."""
    result = _report(net.check_in(callsign, tactical_call=tactical, name=name,
                                  location=location, lookup=lookup))
    looked_up = result.data.get('lookup')
    if looked_up:
        console.print(f"[dim]HamDB: {looked_up['name']}, {looked_up['city']} {looked_up['state']}[/dim]")


@cli.command()
@click.argument('participant_id')
@click.option('--callsign', default=None)
@click.option('--tactical', default=None, help='Tactical call (empty string clears)')
@click.option('--name', default=None)
@click.option('--location', default=None)
def edit(participant_id, callsign, tactical, name, location):
    """Edit a participant; callsign and tactical changes update the log."""
    updates = {'callsign': callsign, 'tactical_call': tactical, 'name': name, 'location': location}
    updates = {k: v for k, v in updates.items() if v is not None}
    if not updates:
        _fail(CommandResult.fail("Nothing to update"))
    participants = net.get_status().data['participants']
    _report(net.update_participant(_resolve_id(participants, participant_id, 'participant'), **updates))


@cli.command()
@click.argument('participant_id')
def remove(participant_id):
    """Remove a participant (log entries are kept)."""
    participants = net.get_status().data['participants']
    _report(net.remove_participant(_resolve_id(participants, participant_id, 'participant')))


@cli.command()
@click.argument('from_callsign')
@click.argument('message', nargs=-1)
@click.option('--to', 'to_callsign', default='', help='Recipient (default: NC)')
def log(from_callsign, message, to_callsign):
    """Log a transmission from FROM_CALLSIGN."""
    _report(net.log_message(from_callsign, to_callsign, ' '.join(message)))


@cli.command()
@click.argument('entry_id')
def ack(entry_id):
    """Mark a log entry as acknowledged."""
    entries = net.get_status().data['logEntries']
    _report(net.acknowledge(_resolve_id(entries, entry_id, 'log entry')))


@cli.command()
@click.argument('callsign')
def lookup(callsign):
    """Look a callsign up in HamDB."""
    result = net.lookup_callsign(callsign)
    if not result.success:
        _fail(result)
    data = result.data
    table = Table(show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="green")
    for key in ('callsign', 'name', 'city', 'state', 'country', 'grid'):
        table.add_row(key.capitalize(), data.get(key) or '')
    console.print(table)


@cli.command('export-csv')
@click.option('--output', '-o', default=None, help="Output file ('-' for stdout)")
def export_csv_cmd(output):
    """Export the ICS-309 log as CSV."""
    result = net.export_csv()
    if not result.success:
        _fail(result)
    _write_output(result.data, output)


@cli.command('export-pdf')
@click.option('--output', '-o', default=None, help="Output file ('-' for stdout)")
def export_pdf_cmd(output):
    """Export the ICS-309 log as PDF."""
    result = net.export_pdf()
    if not result.success:
        _fail(result)
    _write_output(result.data, output)


@cli.command('import-csv')
@click.argument('csv_file', type=click.File('r', encoding='utf-8-sig'))
def import_csv_cmd(csv_file):
    """Replace the current net with one from an ICS-309 CSV file."""
    _report(net.import_csv(csv_file.read()))


@cli.command()
@click.confirmation_option(prompt='Discard the current session?')
def reset():
    """Discard the current session from memory and disk."""
    _report(net.reset())


@cli.command()
@click.option('--history', is_flag=True, help='Show version history')
def config(history):
    """Show the current configuration."""
    from utils.env_config import show_config_summary
    console.print(f"[bold cyan]NetCtl v{get_full_version()}[/bold cyan]\n")
    show_config_summary()
    if history:
        from __version__ import show_version_history
        show_version_history()


@cli.command()
@click.option('--host', default=None, help='Host to bind to (env: WEB_HOST)')
@click.option('--port', '-p', type=int, default=None, help='Port (env: WEB_PORT)')
@click.option('--debug', is_flag=True, help='Flask debug mode')
@click.pass_context
def serve(ctx, host, port, debug):
    """Run the web API."""
    import main_web
    argv = []
    if host:
        argv += ['--host', host]
    if port:
        argv += ['--port', str(port)]
    if ctx.parent.params.get('data_dir'):
        argv += ['--data-dir', ctx.parent.params['data_dir']]
    if debug:
        argv.append('--debug')
    main_web.main(argv)


def main():
    cli(prog_name='netctl')


if __name__ == '__main__':
    main()
