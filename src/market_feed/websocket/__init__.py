from .snapshot_ws import SnapshotBroadcaster, snapshot_broadcaster

__all__ = ["SnapshotBroadcaster", "snapshot_broadcaster"]
