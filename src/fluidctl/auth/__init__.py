from .manager import obtain_credential

__all__ = ["obtain_credential"]
