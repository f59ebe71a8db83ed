"""
Booking lifecycle: creation, cancellation and payment intents.

A booking and its room's ``booked`` flag change together. The booking is
written first; if the room cannot be marked booked the booking is removed
again before the error propagates, so no booking is left pointing at a room
that still looks available.
"""

import logging
from typing import Any, Callable, Dict, List

from pymongo.database import Database
from pymongo.errors import DuplicateKeyError, PyMongoError

from database import serialize, to_object_id, utcnow
from errors import NotFound, UpstreamFailure
from notifications import Notifier
from payments import PaymentGateway, to_minor_units
from rooms import RoomStore
from schemas import Booking

logger = logging.getLogger(__name__)

Scheduler = Callable[..., Any]


class BookingManager:
    def __init__(self, db: Database, rooms: RoomStore, notifier: Notifier, gateway: PaymentGateway):
        self.collection = db["booking"]
        self.rooms = rooms
        self.notifier = notifier
        self.gateway = gateway

    def create_booking(self, request: Booking, schedule: Scheduler) -> Dict[str, Any]:
        """
        Record a paid booking and mark its room booked.

        Repeating a request with a known ``transaction_id`` returns the stored
        booking without writing or notifying again. The host is always the
        owner of the booked room, whatever the request claims. Guest and host
        emails are handed to ``schedule`` (e.g. ``BackgroundTasks.add_task``).
        """
        existing = self.collection.find_one({"transaction_id": request.transaction_id})
        if existing is not None:
            logger.info("Booking for transaction %s already recorded", request.transaction_id)
            return serialize(existing)

        room = self.rooms.find_by_id(request.room_id)

        doc = {
            **request.model_dump(),
            "host": room["host"],
            # Calendar day as the client wrote it; Mongo keeps ``date`` in UTC only.
            "day": request.date.date().isoformat(),
            "created_at": utcnow(),
        }
        try:
            inserted_id = self.collection.insert_one(doc).inserted_id
        except DuplicateKeyError:
            # Lost a race with an identical request.
            return serialize(self.collection.find_one({"transaction_id": request.transaction_id}))
        except PyMongoError as e:
            logger.error("Failed to write booking: %s", e)
            raise UpstreamFailure("Could not record booking")

        try:
            marked = self.rooms.set_booked(request.room_id, True)
        except PyMongoError as e:
            logger.error("Failed to mark room %s booked: %s", request.room_id, e)
            self._compensate(inserted_id)
            raise UpstreamFailure("Could not update room status")
        if not marked:
            self._compensate(inserted_id)
            raise NotFound(f"Room {request.room_id} not found")

        booking = serialize(self.collection.find_one({"_id": inserted_id}))
        logger.info("Booked room %s for %s", request.room_id, request.guest.email)
        schedule(self.notifier.notify_booking, booking)
        return booking

    def _compensate(self, booking_id) -> None:
        logger.error("Rolling back booking %s", booking_id)
        try:
            self.collection.delete_one({"_id": booking_id})
        except PyMongoError as e:
            logger.error("Rollback of booking %s failed, booking left in place: %s", booking_id, e)

    def cancel_booking(self, booking_id: str) -> bool:
        """Delete a booking and release its room. Returns False if it was already gone."""
        doc = self.collection.find_one_and_delete({"_id": to_object_id(booking_id)})
        if doc is None:
            return False
        room_id = doc.get("room_id")
        if room_id and not self.rooms.set_booked(room_id, False):
            logger.warning("Cancelled booking %s for missing room %s", booking_id, room_id)
        logger.info("Cancelled booking %s", booking_id)
        return True

    def list_for_guest(self, email: str) -> List[Dict[str, Any]]:
        return [serialize(doc) for doc in self.collection.find({"guest.email": email}).sort("date", -1)]

    def list_for_host(self, email: str) -> List[Dict[str, Any]]:
        return [serialize(doc) for doc in self.collection.find({"host.email": email}).sort("date", -1)]

    def set_room_status(self, room_id: str, booked: bool) -> None:
        if not self.rooms.set_booked(room_id, booked):
            raise NotFound(f"Room {room_id} not found")

    def create_payment_intent(self, price) -> str:
        return self.gateway.create_intent(to_minor_units(price))
