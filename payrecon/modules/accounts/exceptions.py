"""Errors raised while managing operator accounts."""


class AccountError(Exception):
    """Base class for operator account errors."""


class AccountAlreadyExistsError(AccountError):
    """The username is already taken by another operator."""


class UnsupportedRoleError(AccountError):
    """The requested role cannot sign in to the operator console."""
