"""Loading the operator-supplied list of users to offboard."""

from .loaders import UnsupportedFileTypeError, load_users

__all__ = ["load_users", "UnsupportedFileTypeError"]
