from .conversion_repository import ConversionRepository

__all__ = ["ConversionRepository"]
