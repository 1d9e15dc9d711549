import os
from typing import TypeVar, Type, Optional

from dotenv import load_dotenv

load_dotenv()

T = TypeVar("T")


def get_env_variable(name: str, type_: Type[T], default: Optional[T]) -> T:
    """Type-safe wrapper for `os.getenv`.

    Args:
        name (str): Name of the environment variable.
        type_ (Type[T]): Type of the environment variable.
        default (T): Default value if the environment variable is not set.

    Returns:
        T: Value of the environment variable.

    Usage:
        ```python
        from vault.utils.env import get_env_variable

        get_env_variable("POLYGON_RPC", str, "https://polygon-rpc.com")
        get_env_variable("DEFAULT_MIN_TEND_WAIT", int, 300)
        ```
    """

    try:
        value = os.getenv(name, default)
        return type_.__call__(value)
    except ValueError:
        raise ValueError(
            f"Environment variable '{name}' is not of type '{type_.__name__}'."
        )
    except TypeError:
        raise TypeError(
            f"Environment variable '{name}' is not set and has no default value."
        )

MAINNET_RPC = get_env_variable(
    name="MAINNET_RPC",
    type_=str,
    default="https://eth.llamarpc.com",
)
BASE_RPC = get_env_variable(
    name="BASE_RPC",
    type_=str,
    default="https://base.llamarpc.com",
)
POLYGON_RPC = get_env_variable(
    name="POLYGON_RPC",
    type_=str,
    default="https://polygon-rpc.com",
)

# Vault configuration defaults
DEFAULT_TARGET_IDLE_BPS = get_env_variable(
    name="DEFAULT_TARGET_IDLE_BPS",
    type_=int,
    default=1000,
)
DEFAULT_TARGET_IDLE_BUFFER_BPS = get_env_variable(
    name="DEFAULT_TARGET_IDLE_BUFFER_BPS",
    type_=int,
    default=100,
)
DEFAULT_MIN_ASSET = get_env_variable(
    name="DEFAULT_MIN_ASSET",
    type_=int,
    default=0,
)
DEFAULT_MIN_TEND_WAIT = get_env_variable(
    name="DEFAULT_MIN_TEND_WAIT",
    type_=int,
    default=300,
)
DEFAULT_PAIRED_TOKEN_DISCOUNT_BPS = get_env_variable(
    name="DEFAULT_PAIRED_TOKEN_DISCOUNT_BPS",
    type_=int,
    default=50,
)
DEFAULT_SWAP_TICK_TOLERANCE = get_env_variable(
    name="DEFAULT_SWAP_TICK_TOLERANCE",
    type_=int,
    default=1,
)
