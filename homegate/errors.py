"""Exception hierarchy for homegate.

Fatal errors (ConfigError, CollaboratorError) abort a monitoring run.
Soft errors (DeviceNotFoundError, EnforcementError) are recorded in the run
summary and processing continues with the next device.
"""


class HomegateError(Exception):
    """Base class for all homegate errors."""


class ConfigError(HomegateError):
    """Invalid or missing configuration (credentials, period, policy)."""


class InvalidPolicyError(ConfigError):
    """Policy string contains no well-formed entries."""


class CollaboratorError(HomegateError):
    """A router call (connect, fetch) failed."""


class RouterError(CollaboratorError):
    """The router rejected a request or returned an unusable response."""


class DeviceNotFoundError(HomegateError):
    """No measurement series exists for a target device."""


class EnforcementError(HomegateError):
    """A block/unblock action could not be issued."""
