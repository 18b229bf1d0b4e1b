from __future__ import annotations

import logging

from .base_types import AssetId, FeedId, is_native
from .collaborators import AdminGate
from .errors import AssetNotSupported, InvalidAsset, InvalidOracle, Unauthorized

logger = logging.getLogger(__name__)


class AssetRegistry:
    """Secondary assets accepted for deposit and the price feed bound to each.

    Membership lives in a flag map next to a dense list; removal swaps the
    removed slot with the last element, so list order carries no meaning.
    """

    def __init__(self, *, admin_gate: AdminGate) -> None:
        self._admin_gate = admin_gate
        self._supported: dict[AssetId, bool] = {}
        self._supported_list: list[AssetId] = []
        self._positions: dict[AssetId, int] = {}
        self._feeds: dict[AssetId, FeedId] = {}

    def support(self, caller: str, asset_id: AssetId, feed_id: FeedId | None = None) -> bool:
        """Register ``asset_id``; returns True when it was not supported before."""
        self.require_admin(caller, "support asset")
        if not asset_id or is_native(asset_id):
            raise InvalidAsset(asset_id=asset_id)

        newly_supported = not self._supported.get(asset_id, False)
        if newly_supported:
            self._supported[asset_id] = True
            self._positions[asset_id] = len(self._supported_list)
            self._supported_list.append(asset_id)
            logger.info("Asset %s supported", asset_id)
        if feed_id is not None:
            self._feeds[asset_id] = feed_id
            logger.info("Asset %s bound to feed %s", asset_id, feed_id)
        return newly_supported

    def unsupport(self, caller: str, asset_id: AssetId) -> None:
        self.require_admin(caller, "unsupport asset")
        if not self._supported.get(asset_id, False):
            raise AssetNotSupported(asset_id=asset_id)

        self._supported[asset_id] = False
        position = self._positions.pop(asset_id)
        last = self._supported_list.pop()
        if last != asset_id:
            self._supported_list[position] = last
            self._positions[last] = position
        self._feeds.pop(asset_id, None)
        logger.info("Asset %s unsupported, feed binding removed", asset_id)

    def set_feed(self, caller: str, asset_id: AssetId, feed_id: FeedId) -> None:
        self.require_admin(caller, "set price feed")
        if not asset_id or is_native(asset_id):
            raise InvalidOracle(asset_id=asset_id)
        self._feeds[asset_id] = feed_id
        logger.info("Asset %s bound to feed %s", asset_id, feed_id)

    def is_supported(self, asset_id: AssetId) -> bool:
        return self._supported.get(asset_id, False)

    def feed_for(self, asset_id: AssetId) -> FeedId | None:
        return self._feeds.get(asset_id)

    def supported_assets(self) -> list[AssetId]:
        return list(self._supported_list)

    def require_admin(self, caller: str, operation: str) -> None:
        if not self._admin_gate.has_admin_capability(caller):
            logger.warning("Rejected %s by %s: missing admin capability", operation, caller)
            raise Unauthorized(caller=caller, operation=operation)


__all__ = ["AssetRegistry"]
