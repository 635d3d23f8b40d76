"""Pusher API for publishing operations"""

import asyncio
from pathlib import Path
from typing import Optional

from ..models.result import SyncReport
from ..services.push_service import PushService
from .puller import SessionClient


class Pusher(SessionClient):
    """Pusher class for publishing operations"""

    def push(self, identifier: str, update_policy: Optional[str] = None) -> SyncReport:
        """
        Publish one utility as a main dependency

        Args:
            identifier: ``name`` or ``owner/name``
            update_policy: Policy recorded in the manifest

        Returns:
            SyncReport: Push result
        """
        return asyncio.run(self._async_push(identifier, update_policy))

    def push_all(self) -> SyncReport:
        """
        Publish every local utility whose version is ahead of the registry

        Returns:
            SyncReport: Results of every utility
        """
        return asyncio.run(self._async_push_all())

    async def _async_push(self, identifier: str, update_policy: Optional[str]) -> SyncReport:
        async with self.open_session() as session:
            return await PushService(session).push(identifier, update_policy=update_policy)

    async def _async_push_all(self) -> SyncReport:
        async with self.open_session() as session:
            return await PushService(session).push_all()


def push(identifier: Optional[str] = None, update_policy: Optional[str] = None,
         project_root: Optional[Path] = None) -> SyncReport:
    """Convenience function for publishing one or all utilities"""
    pusher = Pusher(project_root=project_root)
    if identifier:
        return pusher.push(identifier, update_policy=update_policy)
    return pusher.push_all()
