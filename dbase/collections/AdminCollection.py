import os
from datetime import datetime
from typing import Optional

from pymongo import ReturnDocument

from dbase.driver import DbaseDriver, to_object_id


class AdminCollection:
    """
    Admin accounts. Emails are stored lowercased; passwords only as bcrypt hashes.
    """

    def __init__(self, collection_name: Optional[str] = None):
        self.db = DbaseDriver()
        self.collection = self.db.get_collection(collection_name or os.getenv("MONGODB_ADMINS_COLLECTION", "admins"))

    def ensure_indexes(self) -> None:
        self.collection.create_index("email", unique=True)

    @staticmethod
    def _serialize(document: Optional[dict]) -> Optional[dict]:
        if not document:
            return None
        doc = document.copy()
        doc["id"] = str(doc.pop("_id"))
        return doc

    def count(self) -> int:
        return self.collection.count_documents({})

    def get_by_id(self, admin_id: str) -> Optional[dict]:
        return self._serialize(self.collection.find_one({"_id": to_object_id(admin_id)}))

    def get_by_email(self, email: str) -> Optional[dict]:
        return self._serialize(self.collection.find_one({"email": email.lower()}))

    def create(self, email: str, password_hash: str, name: str = "Admin") -> dict:
        now = datetime.utcnow()
        document = {
            "email": email.lower(),
            "name": name,
            "password_hash": password_hash,
            "is_active": True,
            "created_at": now,
            "updated_at": now,
            "last_login": None,
        }
        result = self.collection.insert_one(document)
        document["_id"] = result.inserted_id
        return self._serialize(document)

    def update(self, admin_id: str, updates: dict) -> Optional[dict]:
        updates = {**updates, "updated_at": datetime.utcnow()}
        if "email" in updates:
            updates["email"] = updates["email"].lower()
        document = self.collection.find_one_and_update(
            {"_id": to_object_id(admin_id)},
            {"$set": updates},
            return_document=ReturnDocument.AFTER,
        )
        return self._serialize(document)

    def touch_login(self, admin_id: str) -> None:
        self.collection.update_one({"_id": to_object_id(admin_id)}, {"$set": {"last_login": datetime.utcnow()}})
