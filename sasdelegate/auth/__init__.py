from .token import TokenAcquirer

__all__ = ["TokenAcquirer"]
