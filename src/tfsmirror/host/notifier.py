"""
Build notifier: report the local build outcome to the remote build.

Runs after the local build is complete, possibly in a separate process from
the wrapper. It reattaches to the remote build by id and marks its records
and the build itself as finished. It never fails the local build.
"""

import logging
from typing import Optional

from ..models.local import LocalBuildContext
from .base import HostIntegration, build_id_variable

logger = logging.getLogger(__name__)


class BuildNotifier(HostIntegration):
    """Finishes the remote build that mirrors a local build."""

    def perform(self, local_build: LocalBuildContext, build_id: Optional[int] = None) -> bool:
        """
        Mark the remote records and build as finished.

        Args:
            local_build: The completed local build; its ``result`` is reported
            build_id: Remote build id. Defaults to the id recorded in the
                local build's variables by the wrapper.

        Returns:
            True if the remote build was updated, False otherwise
        """
        if self.config is None:
            logger.info("Remote build server is not configured, nothing to report")
            return False

        if build_id is None:
            value = local_build.variables.get(build_id_variable(local_build))
            if value is None:
                logger.info(f"No remote build was queued for {local_build.display_name}")
                return False
            try:
                build_id = int(value)
            except ValueError:
                logger.error(f"Invalid remote build id '{value}' for {local_build.display_name}")
                return False

        try:
            facade = self._get_facade_factory().get_build_on_tfs(build_id, local_build)
            facade.finish_all_task_records()
            facade.finish_build()
        except Exception as e:
            logger.error(f"Failed to finish remote build {build_id}: {e}", exc_info=True)
            return False

        logger.info(f"Reported {local_build.display_name} to remote build {build_id}")
        return True
