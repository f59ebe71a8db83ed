import logging
from typing import Any, Dict, List

from pymongo import ReturnDocument
from pymongo.database import Database

from database import serialize, utcnow
from errors import NotFound
from schemas import Role, RoleUpdate, UserUpsert

logger = logging.getLogger(__name__)


class UserStore:
    """User documents keyed by email."""

    def __init__(self, db: Database):
        self.collection = db["user"]

    def upsert(self, payload: UserUpsert) -> Dict[str, Any]:
        data = payload.model_dump(exclude_none=True)
        email = data.pop("email")
        status = (data.pop("status", None) or "").lower()

        if status == "requested":
            # A guest asking to become a host; role itself is untouched.
            update = {
                "$set": {"status": "requested"},
                "$setOnInsert": {"role": "guest", "created_at": utcnow()},
            }
        else:
            # First login only; never overwrite an existing record.
            update = {
                "$setOnInsert": {
                    **data,
                    "role": "guest",
                    "status": "none",
                    "created_at": utcnow(),
                }
            }
        doc = self.collection.find_one_and_update(
            {"email": email}, update, upsert=True, return_document=ReturnDocument.AFTER
        )
        return serialize(doc)

    def get(self, email: str) -> Dict[str, Any]:
        doc = self.collection.find_one({"email": email})
        if doc is None:
            raise NotFound(f"User {email} not found")
        return serialize(doc)

    def list_all(self) -> List[Dict[str, Any]]:
        return [serialize(doc) for doc in self.collection.find({})]

    def count(self) -> int:
        return self.collection.count_documents({})

    def update_role(self, email: str, payload: RoleUpdate) -> Dict[str, Any]:
        doc = self.collection.find_one_and_update(
            {"email": email},
            {"$set": {"role": payload.role, "status": payload.status, "updated_at": utcnow()}},
            return_document=ReturnDocument.AFTER,
        )
        if doc is None:
            raise NotFound(f"User {email} not found")
        logger.info("Role of %s changed to %s", email, payload.role)
        return serialize(doc)

    def resolve_role(self, email: str) -> Role:
        doc = self.collection.find_one({"email": email}, {"role": 1})
        if doc is None or not doc.get("role"):
            raise NotFound(f"User {email} not found")
        return doc["role"]
