"""Hook specifications for notification post-send plugins."""

import pluggy
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from infrastructure.notifications.hooks import SendOutcome

hookspec = pluggy.HookspecMarker("notification_engine")


@hookspec
def notification_outcome(outcome: "SendOutcome") -> None:
    """Observe the outcome of a send or bulk run.

    Args:
        outcome: What happened, including the notification when one was created.
    """
