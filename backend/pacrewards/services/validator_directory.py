"""Resolve a consensus address to the peer that registered it."""

from pacrewards.services.errors import PeerNotFoundError
from pacrewards.services.interfaces import SnapshotProvider
from pacrewards.services.schemas.network import NetworkSnapshot, PeerInfo, ResolvedPeer


def resolve(snapshot: NetworkSnapshot, address: str) -> ResolvedPeer:
    """First exact match in snapshot order, then address-list order.

    ``position`` is the index inside the peer's own address list; 0 is the
    primary address. ``public_key`` is None when the peer published fewer
    keys than addresses.
    """
    for peer_index, peer in enumerate(snapshot.peers):
        for position, candidate in enumerate(peer.consensus_addresses):
            if candidate == address:
                return ResolvedPeer(
                    peer_index=peer_index,
                    position=position,
                    public_key=_key_at(peer, position),
                )
    raise PeerNotFoundError(address)


def _key_at(peer: PeerInfo, position: int) -> str | None:
    if position < len(peer.consensus_keys):
        return peer.consensus_keys[position] or None
    return None


class ValidatorDirectory:
    """Resolver bound to the latest cached network snapshot."""

    def __init__(self, snapshots: SnapshotProvider) -> None:
        self.snapshots: SnapshotProvider = snapshots

    def resolve(self, address: str) -> ResolvedPeer:
        return resolve(self.snapshots.snapshot(), address)
