# rentals/api/routers/index.py
from fastapi import APIRouter

from rentals.core.config import get_settings

router = APIRouter()

ENDPOINTS = {
    "auth": {
        "register": "POST /api/auth/register",
        "login": "POST /api/auth/login",
        "refresh": "POST /api/auth/refresh",
        "logout": "POST /api/auth/logout",
        "me": "GET /api/auth/me",
    },
    "admin": {
        "categories": "GET, POST, PUT, DELETE /api/admin/categories",
        "propertyTypes": "GET, POST, PUT, DELETE /api/admin/property-types",
        "amenities": "GET, POST, PUT, DELETE /api/admin/amenities",
        "locationFeatures": "GET, POST, PUT, DELETE /api/admin/location-features",
        "users": "GET /api/admin/users",
        "updateUserRole": "PUT /api/admin/users/{id}/role",
    },
    "host": {
        "properties": "GET, POST, PUT, DELETE /api/host/properties",
        "propertyImages": "POST, DELETE /api/host/properties/{id}/images",
        "bookings": "GET /api/host/bookings",
        "updateBookingStatus": "PUT /api/host/bookings/{id}/status",
        "dashboard": "GET /api/host/dashboard",
    },
    "guest": {
        "properties": "GET /api/guest/properties",
        "propertyDetails": "GET /api/guest/properties/{slug}",
        "propertyAvailability": "GET /api/guest/properties/{id}/availability",
        "bookings": "GET, POST /api/guest/bookings",
        "cancelBooking": "PUT /api/guest/bookings/{id}/cancel",
        "reviews": "POST /api/guest/reviews",
        "wishlists": "GET, POST, PUT, DELETE /api/guest/wishlists",
    },
}


@router.get("/")
async def index():
    return {
        "message": f"Welcome to the {get_settings().PROJECT_NAME}",
        "endpoints": ENDPOINTS,
        "status": "API is running",
    }


@router.get("/ping")
async def ping():
    return {"status": "ok"}
