"""Case opening activity feed."""

from datetime import datetime

from badboys import db


class CaseOpening(db.Model):
    """One container unlock, shown in the public activity feed."""

    __tablename__ = "case_openings"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(
        db.String(32),
        db.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_name = db.Column(db.String(255), nullable=True)

    case_item_id = db.Column(db.Integer, nullable=False)
    case_name = db.Column(db.String(255), nullable=True)
    key_item_id = db.Column(db.Integer, nullable=True)
    key_name = db.Column(db.String(255), nullable=True)
    unlocked_item_id = db.Column(db.Integer, nullable=False)
    unlocked_name = db.Column(db.String(255), nullable=True)
    unlocked_rarity = db.Column(db.String(50), nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "user_id": self.user_id,
            "user_name": self.user_name,
            "case_name": self.case_name,
            "key_name": self.key_name,
            "unlocked_item_id": self.unlocked_item_id,
            "unlocked_name": self.unlocked_name,
            "unlocked_rarity": self.unlocked_rarity,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
