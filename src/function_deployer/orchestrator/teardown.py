"""
Teardown scope for resources created by a workflow run.

Steps register a release action for every resource they create. When the
scope exits, for any reason, it reports what was created and, if cleanup
is enabled, runs the release actions newest-first. Every action is
attempted even if an earlier one fails; release errors are logged and
never replace the error that ended the run.
"""

import logging
from typing import Callable, List, Tuple

logger = logging.getLogger("function_deployer")


class TeardownScope:
    """
    Context manager holding an ordered list of release actions.

    Attributes:
        enabled: Run release actions on exit (otherwise only report)
    """

    def __init__(self, enabled: bool = False):
        self.enabled = enabled
        self._actions: List[Tuple[str, Callable[[], None]]] = []
        self.released: List[str] = []
        self.failed: List[str] = []

    @property
    def registered(self) -> List[str]:
        return [description for description, _ in self._actions]

    def register(self, description: str, release: Callable[[], None]) -> None:
        self._actions.append((description, release))

    def __enter__(self) -> 'TeardownScope':
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        if not self._actions:
            logger.info("Did not create any resources in Azure. No clean up is necessary")
            return False

        if not self.enabled:
            logger.info(f"Created resources left in place: {', '.join(self.registered)}")
            logger.info("Done")
            return False

        for description, release in reversed(self._actions):
            try:
                release()
                self.released.append(description)
            except Exception as e:
                self.failed.append(description)
                logger.warning(f"  ✗ Failed to release {description}: {type(e).__name__}: {e}")

        if self.failed:
            logger.warning(f"Clean up incomplete, release manually: {', '.join(self.failed)}")
        logger.info("Done")
        return False
