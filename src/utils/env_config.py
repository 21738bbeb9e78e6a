"""Environment configuration loader and validator"""

import os
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table

from utils.paths import NetCtlPaths

console = Console()

# Default configuration values
DEFAULTS = {
    # Storage
    'NETCTL_DATA_DIR': '',
    'NETCTL_STRICT_TOKENS': 'false',

    # Logging
    'LOG_LEVEL': 'INFO',
    'LOG_FILE': '',

    # Callsign directory
    'CALLSIGN_LOOKUP_URL': 'https://api.hamdb.org/v1/{callsign}/json/netctl',
    'CALLSIGN_LOOKUP_TIMEOUT': '10',

    # Web API
    'WEB_HOST': '127.0.0.1',
    'WEB_PORT': '5309',
}

VALID_LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']


def find_env_file() -> Optional[Path]:
    """Find the .env file in standard locations"""
    search_paths = [
        Path.cwd() / '.env',
        NetCtlPaths.get_env_file(),
        Path(__file__).parent.parent.parent / '.env',
    ]

    for path in search_paths:
        if path.exists():
            return path

    return None


def load_env_file(env_path: Optional[Path] = None) -> Optional[Path]:
    """
    Load variables from a .env file into the environment.

    Variables already set in the environment win over the file.

    Args:
        env_path: Optional path to .env file. If None, auto-discovers.

    Returns:
        The file that was loaded, or None
    """
    if env_path is None:
        env_path = find_env_file()

    if env_path is None or not env_path.exists():
        return None

    load_dotenv(env_path, override=False)
    return env_path


def get_config(key: str, default: Optional[str] = None) -> str:
    """Get configuration value from environment or defaults

    Priority:
    1. Environment variable
    2. Provided default
    3. Built-in default
    """
    value = os.environ.get(key)
    if value is not None and value != '':
        return value
    if default is not None:
        return default
    return DEFAULTS.get(key, '')


def get_config_bool(key: str, default: bool = False) -> bool:
    """Get boolean configuration value"""
    value = get_config(key, str(default).lower())
    return value.lower() in ('true', 'yes', '1', 'on')


def get_config_int(key: str, default: int = 0) -> int:
    """Get integer configuration value"""
    try:
        return int(get_config(key, str(default)))
    except ValueError:
        return default


def get_config_float(key: str, default: float = 0.0) -> float:
    """Get float configuration value"""
    try:
        return float(get_config(key, str(default)))
    except ValueError:
        return default


def validate_config() -> Dict[str, Any]:
    """Validate current configuration and return status

    Returns:
        Dictionary with validation results
    """
    results = {
        'valid': True,
        'warnings': [],
        'errors': [],
        'config': {}
    }

    log_level = get_config('LOG_LEVEL').upper()
    if log_level not in VALID_LOG_LEVELS:
        results['errors'].append(f"Invalid LOG_LEVEL: {log_level}")
        results['valid'] = False
    results['config']['log_level'] = log_level

    lookup_url = get_config('CALLSIGN_LOOKUP_URL')
    if '{callsign}' not in lookup_url:
        results['errors'].append("CALLSIGN_LOOKUP_URL must contain {callsign}")
        results['valid'] = False
    results['config']['lookup_url'] = lookup_url

    timeout = get_config_float('CALLSIGN_LOOKUP_TIMEOUT', 10.0)
    if timeout <= 0:
        results['warnings'].append(f"Non-positive CALLSIGN_LOOKUP_TIMEOUT: {timeout}, using 10")
        timeout = 10.0
    results['config']['lookup_timeout'] = timeout

    port = get_config_int('WEB_PORT', 5309)
    if not (1 <= port <= 65535):
        results['errors'].append(f"Invalid WEB_PORT: {port}")
        results['valid'] = False
    results['config']['web_port'] = port

    results['config']['data_dir'] = str(NetCtlPaths.get_data_dir())
    results['config']['strict_tokens'] = get_config_bool('NETCTL_STRICT_TOKENS')

    return results


def show_config_summary():
    """Display current configuration summary"""
    table = Table(title="Current Configuration", show_header=True, header_style="bold cyan")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")
    table.add_column("Source", style="yellow")

    env_file = find_env_file()

    for key in sorted(DEFAULTS.keys()):
        env_value = os.environ.get(key)
        if env_value:
            value, source = env_value, "env"
        else:
            value, source = DEFAULTS[key], "default"
        if key == 'NETCTL_DATA_DIR' and not value:
            value = str(NetCtlPaths.get_data_dir())
        table.add_row(key, value, source)

    console.print(table)

    if env_file:
        console.print(f"\n[dim]Loaded from: {env_file}[/dim]")
    else:
        console.print("\n[dim]No .env file found, using defaults[/dim]")


def initialize_config() -> Dict[str, Any]:
    """Load the .env file and validate the result

    Call this at application startup
    """
    load_env_file()
    return validate_config()
