import os
import threading
from typing import Dict, Optional

from bson import ObjectId
from bson.errors import InvalidId
from dotenv import load_dotenv
from pymongo import MongoClient

load_dotenv()

_clients: Dict[str, MongoClient] = {}
_clients_lock = threading.Lock()


def _get_client(uri: str) -> MongoClient:
    with _clients_lock:
        client = _clients.get(uri)
        if client is None:
            client = MongoClient(uri, serverSelectionTimeoutMS=5000)
            _clients[uri] = client
        return client


def to_object_id(value: str) -> ObjectId:
    # ObjectId(None) would silently mint a new id
    if not isinstance(value, str):
        raise ValueError(f"Invalid id: {value!r}")
    try:
        return ObjectId(value)
    except InvalidId:
        raise ValueError(f"Invalid id: {value!r}")


def reset_clients() -> None:
    """Forget every cached client (used by tests and on shutdown)."""
    with _clients_lock:
        for client in _clients.values():
            client.close()
        _clients.clear()


class DbaseDriver:
    """
    Thin wrapper around MongoClient that:
    - Reads connection settings from env (MONGODB_URI, MONGODB_DB_NAME)
    - Shares one lazily created client per URI across the process
    - Exposes a helper to obtain a collection handle.
    """

    def __init__(self, uri: Optional[str] = None, db_name: Optional[str] = None):
        self.uri = uri or os.getenv("MONGODB_URI")
        if not self.uri:
            raise ValueError("MONGODB_URI is not set. Add it to .env or pass uri explicitly.")

        self.db_name = db_name or os.getenv("MONGODB_DB_NAME", "codivra")
        self.client = _get_client(self.uri)
        self.db = self.client[self.db_name]

    def get_collection(self, collection_name: str):
        return self.db[collection_name]
