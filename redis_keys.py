REDIS_MESSAGES_KEY = "room:messages:{slug}" # room name - list of JSON encoded messages, oldest first

# **Example `room:messages:{name}` entry**
# {"room": "general", "username": "alice", "body": "hi", "color": "#ff0",
#  "client_timestamp": "12:01", "server_created_at": ISO timestamp,
#  "server_updated_at": ISO timestamp}
