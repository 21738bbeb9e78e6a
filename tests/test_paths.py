"""
Tests for path utilities.

Run: python3 -m pytest tests/test_paths.py -v
"""

import os
import sys
from pathlib import Path
from unittest.mock import patch

import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / 'src'))

from utils.paths import NetCtlPaths, get_real_user_home


class TestGetRealUserHome:
    """Tests for get_real_user_home function."""

    def test_with_sudo_user(self):
        """Test returns real user home when running with sudo."""
        with patch.dict(os.environ, {'SUDO_USER': 'testuser'}):
            result = get_real_user_home()

            assert result == Path('/home/testuser')

    def test_sudo_user_root(self):
        """Test handles SUDO_USER=root correctly."""
        with patch.dict(os.environ, {'SUDO_USER': 'root'}):
            with patch('pathlib.Path.home') as mock_home:
                mock_home.return_value = Path('/root')
                result = get_real_user_home()

                # Should fall back to Path.home() when SUDO_USER is root
                assert result == Path('/root')

    def test_empty_sudo_user(self):
        """Test handles empty SUDO_USER."""
        with patch.dict(os.environ, {'SUDO_USER': ''}):
            with patch('pathlib.Path.home') as mock_home:
                mock_home.return_value = Path('/home/default')
                result = get_real_user_home()

                assert result == Path('/home/default')


class TestNetCtlPaths:
    """Tests for NetCtlPaths."""

    def test_config_dir(self):
        with patch('utils.paths.get_real_user_home', return_value=Path('/home/op')):
            assert NetCtlPaths.get_config_dir() == Path('/home/op/.config/netctl')
            assert NetCtlPaths.get_env_file() == Path('/home/op/.config/netctl/.env')

    def test_default_data_dir(self):
        with patch.dict(os.environ, {'NETCTL_DATA_DIR': ''}):
            with patch('utils.paths.get_real_user_home', return_value=Path('/home/op')):
                assert NetCtlPaths.get_data_dir() == Path('/home/op/.local/share/netctl')

    def test_data_dir_override(self):
        with patch.dict(os.environ, {'NETCTL_DATA_DIR': '/srv/netctl'}):
            assert NetCtlPaths.get_data_dir() == Path('/srv/netctl')


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
