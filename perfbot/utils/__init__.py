from .shared import build_timeout, describe_response, ensure_root_logging, read_env_secret

__all__ = ["build_timeout", "describe_response", "ensure_root_logging", "read_env_secret"]
