"""NetCtl web API (Flask)."""
