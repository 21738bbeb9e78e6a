"""
NetCtl Commands Layer

Unified command interface for the CLI and the web API.
All UI-independent operations go here.

Usage:
    from commands import net

    net.configure(data_dir=Path("/tmp/netctl"))
    result = net.create_session("Morning Net", "W1ABC", net_control_name="Jane")
    result = net.open_session()
    result = net.check_in("K2XYZ", lookup=True)
    result = net.log_message("K2XYZ", "NC", "traffic for the EOC")
    result = net.export_csv()
"""

from . import net
from .base import CommandResult, ResultStatus

__all__ = [
    'net',
    'CommandResult',
    'ResultStatus',
]
