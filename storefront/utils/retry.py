# storefront/utils/retry.py
import redis
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from storefront.utils.settings import REDIS_RETRY_ATTEMPTS


def redis_retry(attempts: int = REDIS_RETRY_ATTEMPTS):
    """Retries transient Redis failures with exponential backoff, then re-raises the last error."""
    return retry(
        reraise=True,
        stop=stop_after_attempt(attempts),
        wait=wait_exponential(multiplier=0.2, min=0.2, max=2),
        retry=retry_if_exception_type(redis.RedisError),
    )
