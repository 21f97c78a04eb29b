"""
Shared rate limiter.
"""
from slowapi import Limiter
from slowapi.util import get_remote_address

from plantation.config import settings


limiter = Limiter(key_func=get_remote_address)

# Applied to every report route
REPORT_RATE_LIMIT = f"{settings.rate_limit_requests}/minute"
