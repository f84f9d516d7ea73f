#!/usr/bin/env python3
"""Infrastructure services configuration

Document store endpoint used by the keeper service.
"""
import os
from dataclasses import dataclass

from .logging_config import _int


@dataclass
class InfraConfig:
    """Infrastructure service endpoints"""

    # ===========================================
    # MongoDB (native pymongo - port 27017)
    # ===========================================
    mongo_uri: str = "mongodb://localhost:27017"
    mongo_db: str = "gokeeper"
    mongo_users_collection: str = "users"
    mongo_timeout_ms: int = 5000

    @classmethod
    def from_env(cls) -> 'InfraConfig':
        """Load infrastructure config from environment"""
        return cls(
            mongo_uri=os.getenv("MONGO_URI", "mongodb://localhost:27017"),
            mongo_db=os.getenv("MONGO_DB", "gokeeper"),
            mongo_users_collection=os.getenv("MONGO_USERS_COLLECTION", "users"),
            mongo_timeout_ms=_int(os.getenv("MONGO_TIMEOUT_MS", "5000"), 5000),
        )
