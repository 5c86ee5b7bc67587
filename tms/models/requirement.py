"""Requirement model.

Requirements are authored in Rodik, so their primary key is the Rodik
UUID kept as a 36-char string. The API only reads them.
"""

from datetime import datetime, timezone

from tms.models import db


class Requirement(db.Model):
    __tablename__ = "requirements"

    id = db.Column(db.String(36), primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, default="")
    created_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<Requirement {self.id}: {self.name}>"
