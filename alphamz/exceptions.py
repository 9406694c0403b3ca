"""Module containing custom exceptions."""


class CustomError(Exception):
    """Custom alphamz error class."""

    _error_code = ""
    _msg = ""
    _detail_msg = ""
    _user_msg = ""

    @property
    def error_code(self):
        return self._error_code

    @property
    def msg(self):
        return self._msg

    @property
    def detail_msg(self):
        return self._detail_msg

    @property
    def user_msg(self):
        return self._user_msg

    def __init__(self, msg: str = ""):
        self._user_msg = msg

        super().__init__(self._msg)

    def __str__(self):
        return (
            f"{self._error_code}: {self._msg}\n'{self._user_msg}'\n{self._detail_msg}"
        )


class BusinessError(CustomError):
    """Custom error class for 'business' errors.

    A 'business' error is an error that is caused during processing the input (data, configuration, ...) and not by a
    malfunction in alphamz.
    """


class UserError(CustomError):
    """Custom error class for 'user' errors.

    A 'user' error is an error that is caused by the incompatible user input (data, configuration, ...) and not by a
    malfunction in alphamz.
    """


class InvalidParameterError(UserError):
    """Raise when an algorithm is configured with invalid parameters.

    Raised before any data is processed, so no partial output exists.
    """

    _error_code = "INVALID_PARAMETER"

    _msg = "Invalid algorithm parameter."

    def __init__(self, msg: str = "", detail_msg: str = ""):
        super().__init__(msg)
        self._detail_msg = detail_msg


class MissingPrerequisiteDataError(BusinessError):
    """Raise when data required by an algorithm has not been generated yet."""

    _error_code = "MISSING_PREREQUISITE_DATA"

    _msg = "Required input data is missing."

    _detail_msg = """A processing step requires data produced by a previous step.
    This can have the following reasons:
      1. Gaussian fit peak detection was run on a scan without a mass list. Run another mass detector first.
      2. A representative MS1 scan has no mass list. Run mass detection on all MS1 scans first."""


class ConfigError(BusinessError):
    """Raise when something is wrong with the provided configuration."""

    _error_code = "CONFIG_ERROR"

    _msg = "Malformed or invalid configuration."
    _key = ""
    _config_name = ""
    _detail_msg = ""

    def __init__(
        self,
        key: str = "",
        value: str = "",
        config_name: str = "",
        detail_msg: str = "",
    ):
        self._key = key
        self._value = value
        self._config_name = config_name
        self._detail_msg = detail_msg


class KeyAddedConfigError(ConfigError):
    """Raise when a key should be added to a config."""

    def __init__(self, key: str, value: str, config_name: str):
        super().__init__(key, value, config_name)
        self._detail_msg = (
            f"Defining new keys is not allowed when updating a config: "
            f"key='{self._key}', value='{self._value}', config_name='{self._config_name}'"
        )


class TypeMismatchConfigError(ConfigError):
    """Raise when the type of a value does not match the default type."""

    def __init__(self, key: str, value: str, config_name: str, extra_msg: str):
        super().__init__(key, value, config_name)
        self._detail_msg = (
            f"Types of values must match default config: "
            f"key='{self._key}', value='{self._value}', config_name='{self._config_name}', types='{extra_msg}'"
        )
