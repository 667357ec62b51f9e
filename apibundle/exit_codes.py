"""
Standard exit codes for apibundle commands.

Following Unix/POSIX conventions for command-line tools.
"""

# Standard POSIX exit codes
SUCCESS = 0              # Successful termination
GENERAL_ERROR = 1        # General errors
USAGE_ERROR = 2          # Misuse of shell command (wrong arguments, etc.)

# Application-specific exit codes (64-113 are typically available)
NOT_FOUND = 64           # API (or archive) does not exist
DATA_ERROR = 65          # Archive or metadata is malformed
REGISTRATION_ERROR = 66  # Catalog Store rejected the imported API
IO_ERROR = 67            # Workspace or file system failure
CONFIG_ERROR = 68        # Configuration file error
INTERRUPTED = 130        # Terminated by Ctrl+C (SIGINT)

# Exit code mappings, by exception class name. Lookup walks the
# exception's MRO, so subclasses inherit their base's code.
EXCEPTION_EXIT_CODES = {
    'InvalidRequestError': USAGE_ERROR,
    'APINotFoundError': NOT_FOUND,
    'ArchiveCorruptError': DATA_ERROR,
    'MetadataParseError': DATA_ERROR,
    'RegistrationError': REGISTRATION_ERROR,
    'PackagingError': IO_ERROR,
    'OSError': IO_ERROR,
    'ConfigError': CONFIG_ERROR,
    'KeyboardInterrupt': INTERRUPTED,
}


def get_exit_code_for_exception(exc: BaseException) -> int:
    """
    Get the appropriate exit code for an exception.

    Args:
        exc: The exception that occurred

    Returns:
        Appropriate exit code
    """
    if isinstance(exc, CommandError):
        return exc.exit_code
    for cls in type(exc).__mro__:
        if cls.__name__ in EXCEPTION_EXIT_CODES:
            return EXCEPTION_EXIT_CODES[cls.__name__]
    return GENERAL_ERROR


class CommandError(Exception):
    """
    Exception that commands can raise to indicate specific exit codes.
    """
    def __init__(self, message: str, exit_code: int = GENERAL_ERROR):
        super().__init__(message)
        self.exit_code = exit_code


class ConfigError(CommandError):
    """Raised when there's a configuration error."""
    def __init__(self, message: str):
        super().__init__(message, CONFIG_ERROR)
