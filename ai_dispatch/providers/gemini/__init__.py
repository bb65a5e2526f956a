from .adapter import GeminiProvider

__all__ = ["GeminiProvider"]
