from . import move_thread

__all__ = ("move_thread",)
