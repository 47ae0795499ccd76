"""Quiz widget served to chat-assistant hosts."""
