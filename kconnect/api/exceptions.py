"""
Module containing the base exceptions raised by kconnect.
"""


class KconnectError(Exception):
    """
    Base class for all kconnect errors.

    Each concrete error has a unique integer code and a default message.
    """
    __seen__ = dict()

    #: The unique code for the error
    code = None
    #: The default message for the error
    message = "Unknown error"

    def __init_subclass__(cls):
        # Make sure that the code has not been used for another error
        if cls.code is None:
            return
        if cls.code in KconnectError.__seen__ and KconnectError.__seen__[cls.code] is not cls:
            message = 'code {} already in use by {}'.format(
                cls.code,
                KconnectError.__seen__[cls.code].__name__
            )
            raise TypeError(message)
        KconnectError.__seen__[cls.code] = cls

    def __init__(self, message = None, data = None):
        self.message = message or self.message
        self.data = data
        super().__init__(self.message)


class DuplicateName(KconnectError):
    """
    Raised when a name is declared or registered more than once.
    """


class NotFound(KconnectError):
    """
    Raised when a named thing does not exist.
    """


class TransportFailed(KconnectError):
    """
    Raised when a required client or the network is unavailable.
    """
    code = 10
    message = "Transport failed"


class ProcessFailed(KconnectError):
    """
    Raised when an external process exits with a non-zero status.
    """
    code = 11
    message = "External process failed"

    def __init__(self, message = None, returncode = None, stderr = None):
        super().__init__(message, data = dict(returncode = returncode, stderr = stderr))
        self.returncode = returncode
        self.stderr = stderr
