"""
Main API router that includes all route modules.
"""
from fastapi import APIRouter
from app.api.routes import auth, users, trips, contact, itinerary

api_router = APIRouter()

# Include all route modules
api_router.include_router(auth.router)
api_router.include_router(users.router)
api_router.include_router(trips.router)
api_router.include_router(contact.router)
api_router.include_router(itinerary.router)
