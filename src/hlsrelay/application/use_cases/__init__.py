from .relay_resource import RelayResourceUseCase

__all__ = ["RelayResourceUseCase"]
