from typing import Any, Dict, List, Optional

from pymongo import ReturnDocument
from pymongo.database import Database

from database import serialize, to_object_id, utcnow
from errors import NotFound


class RoomStore:
    """
    Single-document operations over room listings.

    No cross-listing rule (double booking, ownership) is enforced here; the
    ``booked`` flag is a plain availability switch kept in sync by callers.
    """

    def __init__(self, db: Database):
        self.collection = db["room"]

    def create(self, listing: Dict[str, Any]) -> Dict[str, Any]:
        data = {**listing, "created_at": utcnow()}
        data.setdefault("booked", False)
        inserted_id = self.collection.insert_one(data).inserted_id
        return serialize(self.collection.find_one({"_id": inserted_id}))

    def find_by_id(self, room_id: str) -> Dict[str, Any]:
        doc = self.collection.find_one({"_id": to_object_id(room_id)})
        if doc is None:
            raise NotFound(f"Room {room_id} not found")
        return serialize(doc)

    def exists(self, room_id: str) -> bool:
        return self.collection.find_one({"_id": to_object_id(room_id)}, {"_id": 1}) is not None

    def find_by_host(self, email: str) -> List[Dict[str, Any]]:
        return [serialize(doc) for doc in self.collection.find({"host.email": email})]

    def list_by_category(self, category: Optional[str] = None) -> List[Dict[str, Any]]:
        filter_: Dict[str, Any] = {}
        # The web client sends the literal string "null" when no category is selected.
        if category and category != "null":
            filter_["category"] = category
        return [serialize(doc) for doc in self.collection.find(filter_)]

    def count(self, host_email: Optional[str] = None) -> int:
        filter_ = {"host.email": host_email} if host_email else {}
        return self.collection.count_documents(filter_)

    def update(self, room_id: str, patch: Dict[str, Any]) -> Dict[str, Any]:
        oid = to_object_id(room_id)
        if not patch:
            return self.find_by_id(room_id)
        doc = self.collection.find_one_and_update(
            {"_id": oid},
            {"$set": {**patch, "updated_at": utcnow()}},
            return_document=ReturnDocument.AFTER,
        )
        if doc is None:
            raise NotFound(f"Room {room_id} not found")
        return serialize(doc)

    def set_booked(self, room_id: str, booked: bool) -> bool:
        """Flip the availability flag. Returns False when the room does not exist."""
        result = self.collection.update_one({"_id": to_object_id(room_id)}, {"$set": {"booked": booked}})
        return result.matched_count > 0

    def delete(self, room_id: str) -> bool:
        result = self.collection.delete_one({"_id": to_object_id(room_id)})
        return result.deleted_count > 0
