from assistant_relay.models.thread_binding import ThreadBinding

__all__ = ["ThreadBinding"]
