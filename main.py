import os
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Depends, BackgroundTasks, Query, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pymongo.database import Database

from auth import Identity, authenticate, clear_token_cookie, get_user_store, issue_token, require_role, set_token_cookie
from bookings import BookingManager
from config import settings
from database import database, ensure_indexes, get_db
from errors import AppError
from notifications import Notifier
from payments import PaymentGateway
from rooms import RoomStore
from schemas import (
    AdminStats,
    Booking,
    GuestStats,
    HostStats,
    PaymentIntentRequest,
    RoleUpdate,
    Room,
    RoomStatusUpdate,
    RoomUpdate,
    TokenRequest,
    UserUpsert,
)
from users import UserStore
import stats

logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    ensure_indexes(database.open())
    yield
    database.close()


app = FastAPI(title="StayVista Rental API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message, "code": exc.code})


# ------------------------
# Dependencies
# ------------------------
def get_room_store(db: Database = Depends(get_db)) -> RoomStore:
    return RoomStore(db)


def get_notifier() -> Notifier:
    return Notifier(
        settings.email_provider,
        settings.mail_from,
        settings.resend_api_key.get_secret_value(),
    )


def get_payment_gateway() -> PaymentGateway:
    return PaymentGateway(settings.stripe_secret_key.get_secret_value(), settings.payment_currency)


def get_booking_manager(
    db: Database = Depends(get_db),
    rooms: RoomStore = Depends(get_room_store),
    notifier: Notifier = Depends(get_notifier),
    gateway: PaymentGateway = Depends(get_payment_gateway),
) -> BookingManager:
    return BookingManager(db, rooms, notifier, gateway)


@app.get("/")
def root():
    return {"name": "StayVista Rental API", "status": "ok"}


@app.get("/test")
def test_database():
    response = {
        "backend": "✅ Running",
        "database": "❌ Not Available",
        "database_url": "✅ Set" if os.getenv("DATABASE_URL") else "❌ Not Set",
        "database_name": "✅ Set" if os.getenv("DATABASE_NAME") else "❌ Not Set",
        "connection_status": "Not Connected",
        "collections": [],
    }
    if database.ping():
        response["database"] = "✅ Connected"
        response["connection_status"] = "Connected"
        response["collections"] = database.get().list_collection_names()
    return response

# ------------------------
# Session
# ------------------------
@app.post("/jwt")
def create_session(payload: TokenRequest, response: Response):
    token = issue_token({"email": payload.email})
    set_token_cookie(response, token)
    logger.info("Issued session token for %s", payload.email)
    return {"success": True}


@app.get("/logout")
def logout(response: Response):
    clear_token_cookie(response)
    return {"success": True}

# ------------------------
# Users
# ------------------------
@app.put("/user")
def upsert_user(payload: UserUpsert, users: UserStore = Depends(get_user_store)):
    return users.upsert(payload)


@app.get("/user/{email}")
def get_user(email: str, users: UserStore = Depends(get_user_store)):
    return users.get(email)


@app.get("/users")
def list_users(current: Identity = Depends(require_role("admin")), users: UserStore = Depends(get_user_store)):
    return users.list_all()


@app.patch("/user/update/role/{email}")
def update_user_role(
    email: str,
    payload: RoleUpdate,
    current: Identity = Depends(require_role("admin")),
    users: UserStore = Depends(get_user_store),
):
    return users.update_role(email, payload)

# ------------------------
# Rooms
# ------------------------
@app.get("/rooms")
def list_rooms(category: Optional[str] = Query(None), rooms: RoomStore = Depends(get_room_store)):
    return rooms.list_by_category(category)


@app.get("/room/{room_id}")
def get_room(room_id: str, rooms: RoomStore = Depends(get_room_store)):
    return rooms.find_by_id(room_id)


@app.get("/my-listings/{email}")
def my_listings(email: str, current: Identity = Depends(require_role("host")), rooms: RoomStore = Depends(get_room_store)):
    return rooms.find_by_host(email)


@app.post("/room")
def create_room(payload: Room, current: Identity = Depends(require_role("host")), rooms: RoomStore = Depends(get_room_store)):
    data = payload.model_dump()
    data["host"]["email"] = current.email
    return rooms.create(data)


@app.patch("/room/status/{room_id}")
def set_room_status(
    room_id: str,
    payload: RoomStatusUpdate,
    current: Identity = Depends(authenticate),
    manager: BookingManager = Depends(get_booking_manager),
):
    manager.set_room_status(room_id, payload.status)
    return {"id": room_id, "booked": payload.status}


@app.patch("/room/{room_id}")
def update_room(
    room_id: str,
    payload: RoomUpdate,
    current: Identity = Depends(require_role("host")),
    rooms: RoomStore = Depends(get_room_store),
):
    return rooms.update(room_id, payload.model_dump(exclude_unset=True))


@app.delete("/room/{room_id}")
def delete_room(room_id: str, current: Identity = Depends(require_role("host")), rooms: RoomStore = Depends(get_room_store)):
    return {"deleted": rooms.delete(room_id)}

# ------------------------
# Bookings
# ------------------------
@app.get("/manage-bookings/{email}")
def manage_bookings(
    email: str,
    current: Identity = Depends(require_role("host")),
    manager: BookingManager = Depends(get_booking_manager),
):
    return manager.list_for_host(email)


@app.get("/my-bookings/{email}")
def my_bookings(email: str, current: Identity = Depends(authenticate), manager: BookingManager = Depends(get_booking_manager)):
    return manager.list_for_guest(email)


@app.post("/booking")
def create_booking(
    payload: Booking,
    background_tasks: BackgroundTasks,
    current: Identity = Depends(authenticate),
    manager: BookingManager = Depends(get_booking_manager),
):
    return manager.create_booking(payload, schedule=background_tasks.add_task)


@app.delete("/booking/{booking_id}")
def cancel_booking(booking_id: str, current: Identity = Depends(authenticate), manager: BookingManager = Depends(get_booking_manager)):
    return {"deleted": manager.cancel_booking(booking_id)}


@app.post("/create-payment-intent")
def create_payment_intent(
    payload: PaymentIntentRequest,
    current: Identity = Depends(authenticate),
    manager: BookingManager = Depends(get_booking_manager),
):
    return {"client_secret": manager.create_payment_intent(payload.price)}

# ------------------------
# Statistics
# ------------------------
@app.get("/admin-stats", response_model=AdminStats)
def admin_stats(current: Identity = Depends(require_role("admin")), db: Database = Depends(get_db)):
    return stats.admin_stats(db)


@app.get("/host-stats", response_model=HostStats)
def host_stats(current: Identity = Depends(require_role("host")), db: Database = Depends(get_db)):
    return stats.host_stats(db, current.email)


@app.get("/guest-stats", response_model=GuestStats)
def guest_stats(current: Identity = Depends(require_role("guest")), db: Database = Depends(get_db)):
    return stats.guest_stats(db, current.email)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=settings.port)
