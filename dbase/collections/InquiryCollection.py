import os
from datetime import datetime
from typing import List, Optional

from pymongo import ReturnDocument

from dbase.driver import DbaseDriver, to_object_id


class InquiryCollection:
    """
    CRUD helper for inquiry form submissions stored in MongoDB.
    """

    def __init__(self, collection_name: Optional[str] = None):
        self.db = DbaseDriver()
        self.collection = self.db.get_collection(
            collection_name or os.getenv("MONGODB_INQUIRIES_COLLECTION", "inquiry_submissions")
        )

    @staticmethod
    def _serialize(document: Optional[dict]) -> Optional[dict]:
        if not document:
            return None
        doc = document.copy()
        doc["id"] = str(doc.pop("_id"))
        return doc

    def list(self) -> List[dict]:
        cursor = self.collection.find({}).sort("created_at", -1)
        return [self._serialize(doc) for doc in cursor]

    def create(self, data: dict, email_error: Optional[str] = None) -> dict:
        document = {
            **data,
            "read": False,
            "created_at": datetime.utcnow(),
        }
        if email_error:
            document["email_error"] = email_error
        result = self.collection.insert_one(document)
        document["_id"] = result.inserted_id
        return self._serialize(document)

    def toggle_read(self, inquiry_id: str) -> Optional[dict]:
        object_id = to_object_id(inquiry_id)
        existing = self.collection.find_one({"_id": object_id})
        if not existing:
            return None
        document = self.collection.find_one_and_update(
            {"_id": object_id},
            {"$set": {"read": not existing.get("read", False)}},
            return_document=ReturnDocument.AFTER,
        )
        return self._serialize(document)

    def delete(self, inquiry_id: str) -> bool:
        result = self.collection.delete_one({"_id": to_object_id(inquiry_id)})
        return result.deleted_count == 1
