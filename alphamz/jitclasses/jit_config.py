from abc import ABC, abstractmethod

import numpy as np


class ParameterConfig(ABC):
    """Base class for algorithm parameter objects.

    Parameters are stored as private attributes and exposed as properties.
    Subclasses must implement `__init__()` setting all defaults and `validate()`.

    Example
    -------

    .. code-block:: python

        class LocalMaximaConfig(ParameterConfig):
            def __init__(self):
                self.noise_level = 0.0

            def validate(self):
                if self.noise_level < 0:
                    raise InvalidParameterError("noise_level must be >= 0")

        config = LocalMaximaConfig()
        config.update({'noise_level': 100.0})

    """

    @abstractmethod
    def __init__(self, *args, **kwargs):
        """Base class for creating parameter objects."""

    @abstractmethod
    def validate(self):
        """Validates the config object.
        Classes inheriting from ParameterConfig must implement their own validate method.
        """

    @classmethod
    def from_config(cls, input_dict: dict | None = None):
        """Create a parameter object with defaults updated by a config section.

        Parameters
        ----------

        input_dict : dict, optional
            Section of an alphamz config, e.g. `config['peak_detection']['zscore']`.

        Returns
        -------
        ParameterConfig
            Validated parameter object.

        """
        config = cls()
        if input_dict is not None:
            config.update(input_dict)
        config.validate()
        return config

    def update(self, input_dict: dict):
        """Updates the config object with a dictionary of parameters.

        Can be used to update config object safely with a dictionary of parameters.

        Parameters
        ----------

        input_dict : dict
            Dictionary of parameters to update the config object.

        """
        for key, value in input_dict.items():
            # check if attribute exists
            if not hasattr(self, key):
                raise ValueError(
                    f"Parameter {key} does not exist in {self.__class__.__name__}",
                )

            # check if types match
            if not isinstance(value, type(getattr(self, key))):
                try:
                    value = type(getattr(self, key))(value)
                except Exception as e:
                    raise ValueError(
                        f"Parameter {key} has wrong type {type(value)}",
                    ) from e

            # check if dtype matches
            if (
                isinstance(value, np.ndarray)
                and value.dtype != getattr(self, key).dtype
            ):
                try:
                    value = value.astype(getattr(self, key).dtype)
                except Exception as e:
                    raise ValueError(
                        f"Parameter {key} has wrong dtype {value.dtype}",
                    ) from e

            setattr(self, key, value)

    def __repr__(self) -> str:
        repr = f"<{self.__class__.__name__}, \n"
        for key, value in self.__dict__.items():
            repr += f"{key.lstrip('_')}={value} \n"

        repr += ">"
        return repr


class JITConfig(ParameterConfig):
    """Base class for creating numba compatible config objects.

    Example
    -------

    Defining a config object tends to be verbose due to the strict typing requirements of numba.
    It requires to define a numba jitclass with the correct types for each attribute and a __init__() method.

    .. code-block:: python

        @nb.experimental.jitclass()
        class ZScoreConfigJIT():
            lag: nb.int64
            def __init__(self, lag):
                self.lag = lag

    For defining default values and updating the config object, the JITConfig class is used as base class.
    The config object must contain a class attribute `_jit_container_type` pointing to the matching numba jitclass.
    The config object must implement a __init__() method where all parameters are initialized in the same order as they appear in the numba constructor.

    .. code-block:: python

        class ZScoreConfig(JITConfig):
            _jit_container_type = ZScoreConfigJIT
            def __init__(self, lag = 7):
                self.lag = lag

        config = ZScoreConfig()


    The jit config can then be retrieved by calling the `to_jitclass()` method.

    .. code-block:: python

        config = ZScoreConfig()
        jit_config = config.to_jitclass()
        print(jit_config.lag)
        >> 7

    """

    _jit_container_type: type

    def to_jitclass(self):
        """Create a numba jitclass object with the current state of this class.

        Returns
        -------

        jitclass : numba.experimental.jitclass.boxing.XXX
            Numba jitclass object with the type as defined in the _jit_container_type class attribute.
        """

        self.validate()

        return self._jit_container_type(*self.__dict__.values())
