# src/barcode_gateway/api/v1/router.py
from fastapi import APIRouter

from barcode_gateway.api.v1 import barcode

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(barcode.router)
