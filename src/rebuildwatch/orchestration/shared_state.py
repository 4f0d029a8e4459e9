"""
Shared constants for the orchestration module.
"""


class TimeoutConstants:
    """
    Centralized timeout configuration.

    None of these bound a running build. A hung toolchain is only replaced
    by the next relevant change.
    """
    # Process termination timeouts, used only when the coordinator shuts down
    TERMINATION_GRACEFUL_TIMEOUT = 3
    TERMINATION_INTERRUPT_TIMEOUT = 2
    TERMINATION_FORCE_TIMEOUT = 2

    # Time allowed for exit handlers to drain after processes were terminated
    EXIT_HANDLER_DRAIN_TIMEOUT = 5.0

    # Observer thread join during shutdown
    OBSERVER_JOIN_TIMEOUT = 5.0
