from studysync.config.settings import settings

__all__ = ["settings"]
