"""
Console App - configuration and session state.
"""

from riceops.app.config import (
    ApiConfig,
    ConsoleConfig,
    FormConfig,
    get_config,
    reload_config,
    set_config,
)
from riceops.app.state import (
    ConsoleState,
    get_state,
    init_state,
    reset_state,
)

__all__ = [
    # Config
    "ConsoleConfig",
    "ApiConfig",
    "FormConfig",
    "get_config",
    "set_config",
    "reload_config",
    # State
    "ConsoleState",
    "get_state",
    "init_state",
    "reset_state",
]
