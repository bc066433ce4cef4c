# checkout/services/lock_service.py
import redis

from checkout.utils.retry import redis_retry
from checkout.utils.settings import REDIS_URL
from checkout.utils.logging import get_logger

logger = get_logger(__name__)

#LUA porownaj i usun, atomicity
_RELEASE_LUA = """
if redis.call('GET', KEYS[1]) == ARGV[1] then
    return redis.call('DEL', KEYS[1])
else
    return 0
end
"""

#redis wykonuje skrypt lua atomowo, nie mozna wcisnac sie miedzy GET a DEL,
#wiec lock zwalnia tylko ten kto go zalozyl (ten sam token)


class LockService:
    """
    -lock na referencje platnosci (jeden webhook naraz dla jednego zamowienia)
    -zwalnianie locka
    -atomowosc przy pomocy lua
    """

    def __init__(self, url: str | None = None):
        self.redis = redis.Redis.from_url(
            url or REDIS_URL,
            decode_responses=True,
        )

    @staticmethod
    def _payment_key(reference: str) -> str:
        return f"payment:{reference}:lock"

    @redis_retry()
    def acquire_payment_lock(self, reference: str, token: str, ttl: int) -> bool:
        key = self._payment_key(reference)
        logger.info(f"Acquire lock {key}")
        #SET payment:MC-ORD-...:lock "<token>" NX EX 30
        return bool(
            self.redis.set(
                name=key,
                value=token,
                nx=True,
                ex=ttl,  #wygasa sam jesli worker padnie w trakcie
            )
        )

    @redis_retry()
    def release_payment_lock(self, reference: str, token: str) -> bool:
        key = self._payment_key(reference)
        logger.info(f"Release lock {key}")
        res = self.redis.eval(_RELEASE_LUA, 1, key, token)
        return bool(res)
