import os
from datetime import datetime
from typing import Optional

from pymongo import ReturnDocument

from dbase.driver import DbaseDriver


class EmailOtpCollection:
    """
    Pending email-change challenges, at most one per admin.
    Codes are never stored in clear text, only their SHA-256 digest.
    """

    def __init__(self, collection_name: Optional[str] = None):
        self.db = DbaseDriver()
        self.collection = self.db.get_collection(collection_name or os.getenv("MONGODB_OTP_COLLECTION", "email_otps"))

    def ensure_indexes(self) -> None:
        self.collection.create_index("admin_id", unique=True)

    def get_for_admin(self, admin_id: str) -> Optional[dict]:
        return self.collection.find_one({"admin_id": admin_id})

    @staticmethod
    def _fresh(email: str, code_hash: str, created_at: datetime, expires_at: datetime) -> dict:
        return {
            "email": email,
            "code_hash": code_hash,
            "created_at": created_at,
            "expires_at": expires_at,
            "attempts": 0,
            "verified_at": None,
        }

    def create(self, admin_id: str, email: str, code_hash: str, created_at: datetime, expires_at: datetime) -> dict:
        """Insert the first challenge of an admin. Raises DuplicateKeyError if one appeared meanwhile."""
        document = {"admin_id": admin_id, **self._fresh(email, code_hash, created_at, expires_at)}
        result = self.collection.insert_one(document)
        document["_id"] = result.inserted_id
        return document

    def renew(
        self, admin_id: str, email: str, code_hash: str, created_at: datetime, expires_at: datetime, not_after: datetime
    ) -> Optional[dict]:
        """Overwrite the admin's challenge, but only if it was created at or before `not_after`."""
        return self.collection.find_one_and_update(
            {"admin_id": admin_id, "created_at": {"$lte": not_after}},
            {"$set": self._fresh(email, code_hash, created_at, expires_at)},
            return_document=ReturnDocument.AFTER,
        )

    def claim_attempt(self, challenge_id, max_attempts: int) -> Optional[dict]:
        """Count one guess, or return None when the attempt budget is already spent."""
        return self.collection.find_one_and_update(
            {"_id": challenge_id, "attempts": {"$lt": max_attempts}},
            {"$inc": {"attempts": 1}},
            return_document=ReturnDocument.AFTER,
        )

    def mark_verified(self, challenge_id) -> None:
        self.collection.update_one({"_id": challenge_id}, {"$set": {"verified_at": datetime.utcnow()}})

    def take_verified(self, admin_id: str, email: str) -> Optional[dict]:
        """Atomically remove and return the verified challenge for this admin and email."""
        return self.collection.find_one_and_delete(
            {"admin_id": admin_id, "email": email, "verified_at": {"$ne": None}}
        )

    def restore(self, challenge: dict) -> None:
        self.collection.insert_one(challenge)

    def delete(self, challenge_id) -> None:
        self.collection.delete_one({"_id": challenge_id})

    def delete_unverified(self, challenge_id) -> None:
        self.collection.delete_one({"_id": challenge_id, "verified_at": None})
