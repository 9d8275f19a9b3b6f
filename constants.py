import os

REDIS_HOST = os.getenv("REDIS_HOST", "localhost")
REDIS_PORT = int(os.getenv("REDIS_PORT", 6379))
REDIS_PASSWORD = os.getenv("REDIS_PASSWORD", None)

# "redis" or "memory"
MESSAGE_STORE = os.getenv("MESSAGE_STORE", "redis")

DEFAULT_ROOM = "general"
HISTORY_LIMIT = int(os.getenv("HISTORY_LIMIT", 100))
# seconds, 0 disables expiry of a room's message log
MESSAGE_TTL = int(os.getenv("MESSAGE_TTL", 0))

# Broadcast a message live even when persisting it failed
BROADCAST_ON_PERSIST_FAILURE = os.getenv("BROADCAST_ON_PERSIST_FAILURE", "true").lower() in ("1", "true", "yes")
