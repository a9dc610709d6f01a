from fastapi import APIRouter

from tourdesk.api.routes import (
    health, auth, buses, destinations, clients, seat_reservations,
    approvals, seat_selection, discount_approvals, notifications,
)

api_router = APIRouter()
api_router.include_router(health.router, prefix="/health", tags=["health"])  # GET /
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])  # POST /login, /login-json, /register
api_router.include_router(buses.router, prefix="/api/buses", tags=["buses"])  # CRUD + /{id}/layout
api_router.include_router(destinations.router, prefix="/api/destinations", tags=["destinations"])  # CRUD, seat map, manifests
api_router.include_router(clients.router, prefix="/api/clients", tags=["clients"])  # CRUD, children, /{id}/seats
api_router.include_router(clients.children_router, prefix="/api/children", tags=["clients"])  # PUT/DELETE /{id}
api_router.include_router(seat_reservations.router, prefix="/api/seat-reservations", tags=["seat-reservations"])
api_router.include_router(approvals.router, prefix="/api", tags=["public"])  # /approve/{token}, /thank-you/{token}
api_router.include_router(seat_selection.router, prefix="/api/seat-selection", tags=["public"])  # GET/POST /{token}
api_router.include_router(discount_approvals.router, prefix="/api/discount-approvals", tags=["discount-approvals"])
api_router.include_router(notifications.router, prefix="/api/notifications", tags=["notifications"])
api_router.include_router(notifications.ws_router)  # /ws
