from slowapi import Limiter
from slowapi.util import get_remote_address

from inkwell.config import settings

# Default limit covers every route behind SlowAPIMiddleware; auth routes add
# their own stricter decorator.
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[settings.api_rate_limit],
)
