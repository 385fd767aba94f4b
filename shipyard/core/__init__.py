"""Core domain types and logic."""

from .checkout import Checkout, CheckoutError, detect_checkout
from .config import ConfigurationError, PipelineConfig, load_config
from .errors import ErrorCode
from .result import Err, Ok, Result, is_err, is_ok

__all__ = [
    # checkout
    "Checkout",
    "CheckoutError",
    "detect_checkout",
    # config
    "ConfigurationError",
    "PipelineConfig",
    "load_config",
    # errors
    "ErrorCode",
    # result
    "Err",
    "Ok",
    "Result",
    "is_err",
    "is_ok",
]
