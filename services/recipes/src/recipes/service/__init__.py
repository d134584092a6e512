from recipes.service.generation import GenerationRequest, GenerationService, Identity
from recipes.service.rate_limit import FixedWindowRateLimiter, RateLimitResult, RateLimitService

__all__ = [
    "FixedWindowRateLimiter",
    "GenerationRequest",
    "GenerationService",
    "Identity",
    "RateLimitResult",
    "RateLimitService",
]
