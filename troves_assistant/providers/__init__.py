from .base import Provider
from .starknet import StarknetContractReader, parse_int_argument
from .strategies import StrategyCatalogProvider

__all__ = [
    "Provider",
    "StarknetContractReader",
    "StrategyCatalogProvider",
    "parse_int_argument",
]
