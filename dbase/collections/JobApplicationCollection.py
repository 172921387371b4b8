import os
from datetime import datetime
from typing import List, Optional

from dbase.driver import DbaseDriver, to_object_id


class JobApplicationCollection:
    """
    Career applications submitted from the website.
    Applications are only ever created, listed and deleted.
    """

    def __init__(self, collection_name: Optional[str] = None):
        self.db = DbaseDriver()
        self.collection = self.db.get_collection(
            collection_name or os.getenv("MONGODB_JOB_APPLICATIONS_COLLECTION", "job_applications")
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

    def create(self, data: dict) -> dict:
        document = {**data, "created_at": datetime.utcnow()}
        result = self.collection.insert_one(document)
        document["_id"] = result.inserted_id
        return self._serialize(document)

    def delete(self, application_id: str) -> bool:
        result = self.collection.delete_one({"_id": to_object_id(application_id)})
        return result.deleted_count == 1
