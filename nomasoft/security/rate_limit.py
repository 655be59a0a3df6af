from __future__ import annotations

from slowapi import Limiter
from slowapi.util import get_remote_address

CONTACT_SUBMIT_LIMIT = "5/minute"
CONTACT_CONFIG_LIMIT = "60/minute"

limiter = Limiter(key_func=get_remote_address)
