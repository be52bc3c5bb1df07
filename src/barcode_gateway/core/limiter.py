# src/barcode_gateway/core/limiter.py
from slowapi import Limiter
from slowapi.util import get_remote_address

from barcode_gateway.core.config import get_settings

# Eingehendes Limit pro Client-IP, unabhängig von den Upstream-Kontingenten
INBOUND_LIMIT = get_settings().inbound_rate_limit

limiter = Limiter(key_func=get_remote_address)
