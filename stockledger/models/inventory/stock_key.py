from typing import NamedTuple


class StockKey(NamedTuple):
    """Identity of one stock balance.

    Field order doubles as the global lock order: tuples compare by part,
    lot, location, then status, so sorting keys of one part/lot orders them
    by location then status.
    """

    part_id: int
    lot_id: int
    location_id: int
    status_id: int

    def as_dict(self) -> dict:
        return self._asdict()

    def __str__(self) -> str:
        return (
            f"part={self.part_id} lot={self.lot_id} "
            f"location={self.location_id} status={self.status_id}"
        )
