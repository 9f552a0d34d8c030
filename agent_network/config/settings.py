"""
Runtime settings for the agent network engine.

Settings are read once from environment variables so that deployments can
tune timer intervals and the layout store location without code changes.

Usage:
    from agent_network.config.settings import get_setting

    coarse_ms = get_setting('coarse_tick_ms')

Environment Variables:
    AGENT_NETWORK_STORE_PATH=path      - JSON file backing the layout store
                                         (empty = in-memory store)
    AGENT_NETWORK_COARSE_TICK_MS=2000  - status/flow spawn interval
    AGENT_NETWORK_FINE_TICK_MS=50      - flow progress interval
    AGENT_NETWORK_FLOW_LIFETIME_MS=1500 - minimum on-screen lifetime of a flow
    AGENT_NETWORK_SEED=int             - seed for the simulation RNG
    AGENT_NETWORK_ACTIVITY_LIMIT=10    - activity entries shown
"""

import os
from typing import Any, Dict, Optional


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _optional_int_env(name: str) -> Optional[int]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return None
    try:
        return int(raw)
    except ValueError:
        return None


SETTINGS: Dict[str, Any] = {
    'store_path': os.getenv('AGENT_NETWORK_STORE_PATH', ''),
    'coarse_tick_ms': _int_env('AGENT_NETWORK_COARSE_TICK_MS', 2000),
    'fine_tick_ms': _int_env('AGENT_NETWORK_FINE_TICK_MS', 50),
    'flow_lifetime_ms': _int_env('AGENT_NETWORK_FLOW_LIFETIME_MS', 1500),
    'seed': _optional_int_env('AGENT_NETWORK_SEED'),
    'activity_limit': _int_env('AGENT_NETWORK_ACTIVITY_LIMIT', 10),
}


def get_setting(name: str) -> Any:
    """
    Look up a setting value.

    Args:
        name: Setting name (e.g., 'coarse_tick_ms')

    Returns:
        The configured value

    Raises:
        KeyError: If setting name is not recognized

    Example:
        >>> get_setting('fine_tick_ms')
        50
    """
    if name not in SETTINGS:
        available = ', '.join(SETTINGS.keys())
        raise KeyError(
            f"Unknown setting: '{name}'. "
            f"Available settings: {available}"
        )

    return SETTINGS[name]


def get_all_settings() -> Dict[str, Any]:
    """
    Get all settings and their current values.

    Returns:
        Copy of the settings dictionary
    """
    return SETTINGS.copy()


def set_setting(name: str, value: Any) -> None:
    """
    Programmatically override a setting (for testing only).

    Args:
        name: Setting name
        value: New value

    Warning:
        This is for testing only. In production, use environment variables.
    """
    if name not in SETTINGS:
        available = ', '.join(SETTINGS.keys())
        raise KeyError(
            f"Unknown setting: '{name}'. "
            f"Available settings: {available}"
        )

    SETTINGS[name] = value
