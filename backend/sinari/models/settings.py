from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


STORE_SETTING_ID = 1

DEFAULT_STORE_SETTING = {
    "store_name": "Sinari Cell",
    "store_address": "Jl. Melati No. 123, Tangerang Selatan",
    "store_phone": "081234567890",
    "store_email": "support@sinaricell.com",
    "store_website": "https://sinaricell.com",
    "warranty_text": (
        "1. Garansi 7 hari untuk kerusakan yang sama.\n"
        "2. Wajib menunjukan invoice ini saat klaim."
    ),
    "payment_info": "BCA: 1234 5678 90 (Sinari)",
}


class StoreSetting(db.Model):
    """
    Store-wide receipt and contact configuration.

    SINGLETON: only the row with id=1 is ever read or written. It is created
    lazily by the first upsert; until then readers get DEFAULT_STORE_SETTING.
    """
    __tablename__ = "store_settings"

    id = db.Column(db.Integer, primary_key=True, autoincrement=False)
    store_name = db.Column(db.String(100), nullable=False)
    store_address = db.Column(db.String(500), nullable=False)
    store_phone = db.Column(db.String(15), nullable=False)
    store_email = db.Column(db.String(100), nullable=True)
    store_website = db.Column(db.String(100), nullable=True)
    warranty_text = db.Column(db.Text, nullable=False)
    payment_info = db.Column(db.Text, nullable=False)

    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "store_name": self.store_name,
            "store_address": self.store_address,
            "store_phone": self.store_phone,
            "store_email": self.store_email,
            "store_website": self.store_website,
            "warranty_text": self.warranty_text,
            "payment_info": self.payment_info,
            "updated_at": to_utc_z(self.updated_at),
        }
