from __future__ import annotations

import atexit
import logging
import os
import threading
from typing import Any, Dict, Optional, Type

import certifi
from dotenv import load_dotenv
from pydantic import BaseModel
from pymongo import MongoClient

from softdelete.db.fields import OptionsLike
from softdelete.db.model import SoftDeleteModel

load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_DB_NAME = "app"
DEFAULT_COLLECTION_NAME = "documents"


def _client_kwargs(mongo_uri: str) -> Dict[str, Any]:
    kwargs: Dict[str, Any] = {}
    uri_lower = mongo_uri.lower()
    if mongo_uri.startswith("mongodb+srv://") or "tls=true" in uri_lower or "ssl=true" in uri_lower:
        kwargs["tlsCAFile"] = certifi.where()
    return kwargs


class MongoDBClient:
    """Process-wide MongoDB connection configured from the environment.

    Reads MONGO_URI (required), MONGO_DB_NAME and MONGO_COLLECTION_NAME.
    A single MongoClient is shared by every instance.
    """

    _instance = None
    _lock = threading.Lock()
    _client: Optional[MongoClient] = None

    @classmethod
    def _cleanup(cls):
        """Close the shared client on interpreter shutdown."""
        client, cls._client, cls._instance = cls._client, None, None
        if client is not None:
            client.close()

    def __new__(cls, *args, **kwargs):
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        db_name = os.getenv("MONGO_DB_NAME", DEFAULT_DB_NAME)
        collection_name = os.getenv("MONGO_COLLECTION_NAME", DEFAULT_COLLECTION_NAME)

        if MongoDBClient._client is None:
            mongo_uri = os.getenv("MONGO_URI")
            if not mongo_uri:
                raise ValueError("MONGO_URI not found in environment or .env")

            MongoDBClient._client = MongoClient(mongo_uri, **_client_kwargs(mongo_uri))
            # Register atexit cleanup exactly once
            atexit.register(MongoDBClient._cleanup)

        self.client = MongoDBClient._client
        self.db = self.client[db_name]
        self.collection = self.db[collection_name]

    def get_collection(self, name: Optional[str] = None):
        return self.db[name] if name else self.collection

    def soft_delete_model(
        self,
        collection_name: Optional[str] = None,
        options: OptionsLike = None,
        validator: Optional[Type[BaseModel]] = None,
    ) -> SoftDeleteModel:
        """Augment a collection; options default to the SOFT_DELETE_* environment."""
        collection = self.get_collection(collection_name)
        if options is None:
            return SoftDeleteModel.from_env(collection, validator=validator)
        return SoftDeleteModel(collection, options, validator=validator)
