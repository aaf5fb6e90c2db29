from .logging import RequestLogger

__all__ = ["RequestLogger"]
