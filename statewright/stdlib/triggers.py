"""Built-in triggers."""

from __future__ import annotations

from typing import Any

from statewright.kernel.logging import get_logger

logger = get_logger(__name__)


class LogTransitionTrigger:
    """Post-trigger that logs every completed transition and returns None.

    Registered as ``"log"`` in every registry created with built-ins.
    """

    def on_transition(self, transition: str, obj: Any, *data: Any) -> None:
        logger.info(
            "Transition {transition} completed for {obj} (now {state})",
            transition=transition,
            obj=obj,
            state=getattr(obj, "current_state", None),
        )
