"""
NetCtl Path Constants

IMPORTANT: Always use get_real_user_home() instead of Path.home() for
user files. When the logger is started with sudo (for example to bind
the web API to a low port), Path.home() returns /root, but the net logs
belong in /home/<actual_user>.
"""

import os
from pathlib import Path


def get_real_user_home() -> Path:
    """
    Get the real user's home directory, even when running as root via sudo.

    Returns:
        Path to the real user's home directory
    """
    sudo_user = os.environ.get('SUDO_USER')
    if sudo_user and sudo_user != 'root':
        return Path(f'/home/{sudo_user}')
    return Path.home()


class NetCtlPaths:
    """Paths used by the net logger"""

    @classmethod
    def get_config_dir(cls) -> Path:
        """Holds the optional .env file"""
        return get_real_user_home() / '.config' / 'netctl'

    @classmethod
    def get_data_dir(cls) -> Path:
        """
        Session bundles and the callsign cache.

        NETCTL_DATA_DIR overrides the default location.
        """
        override = os.environ.get('NETCTL_DATA_DIR')
        if override:
            return Path(override).expanduser()
        return get_real_user_home() / '.local' / 'share' / 'netctl'

    @classmethod
    def get_env_file(cls) -> Path:
        return cls.get_config_dir() / '.env'
