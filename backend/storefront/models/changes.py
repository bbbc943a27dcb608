from __future__ import annotations

from ..extensions import db
from storefront.time_utils import to_utc_z


class ChangeMarker(db.Model):
    """
    Last-changed timestamp per change topic.

    Written on every mutation so views in other tabs or processes can poll
    for staleness instead of relying on an in-process signal reaching them.
    """
    __tablename__ = "change_markers"

    key = db.Column(db.String(64), primary_key=True)
    changed_at = db.Column(db.DateTime(timezone=True), nullable=False)

    def to_dict(self) -> dict:
        return {
            "key": self.key,
            "changed_at": to_utc_z(self.changed_at),
        }
