"""Single entry point for all peak detection algorithms.

A :class:`PeakDetector` wraps the parameter object of one algorithm. The algorithm is selected by the `kind`
attribute of the parameter object.

Example
-------

.. code-block:: python

    from alphamz.config import load_config
    from alphamz.peakfinding.detector import PeakDetector, detect_peaks_batch

    detector = PeakDetector.from_config(load_config(["experiment.yaml"]))
    peak_lists = detect_peaks_batch(spectra, detector)

"""

# native imports
import logging
import threading
from multiprocessing.pool import ThreadPool

# third party imports
import alphatims.utils
from tqdm import tqdm

# alphamz imports
from alphamz import reporting  # noqa: F401 registers logger.progress
from alphamz.constants.keys import ConfigKeys, DetectorKind
from alphamz.data.spectrum import PeakList, Spectrum
from alphamz.exceptions import InvalidParameterError, MissingPrerequisiteDataError
from alphamz.peakfinding.config import (
    GaussianFitConfig,
    LocalMaximaConfig,
    ZScoreConfig,
    detector_config_from_config,
)
from alphamz.peakfinding.gaussian_fit import detect_gaussian_fit
from alphamz.peakfinding.local_maxima import detect_local_maxima
from alphamz.peakfinding.zscore import detect_zscore

logger = logging.getLogger()


def detect(
    spectrum: Spectrum,
    config: ZScoreConfig | GaussianFitConfig | LocalMaximaConfig,
    peak_list: PeakList | None = None,
) -> PeakList:
    """Detect peaks in a spectrum with the algorithm configured by `config`.

    Parameters
    ----------

    spectrum : Spectrum
        Profile spectrum.

    config : ZScoreConfig | GaussianFitConfig | LocalMaximaConfig
        Parameter object, its `kind` selects the algorithm.

    peak_list : PeakList, optional
        Coarse peak list, only used by the gaussian fit.

    Returns
    -------
    PeakList
        Detected peaks in m/z order.

    """
    if config.kind == DetectorKind.ZSCORE:
        return detect_zscore(spectrum, config)
    elif config.kind == DetectorKind.GAUSSIAN_FIT:
        return detect_gaussian_fit(spectrum, config, peak_list)
    elif config.kind == DetectorKind.LOCAL_MAXIMA:
        return detect_local_maxima(spectrum, config)

    raise InvalidParameterError(f"Unknown peak detector '{config.kind}'")


class PeakDetector:
    def __init__(
        self,
        config: ZScoreConfig | GaussianFitConfig | LocalMaximaConfig,
        thread_count: int = 0,
    ):
        """Peak detector configured with the parameter object of one algorithm.

        Parameters
        ----------

        config : ZScoreConfig | GaussianFitConfig | LocalMaximaConfig
            Parameter object. It is validated on creation.

        thread_count : int, optional
            Default number of threads of batch detection. By default 0 (all cores).

        """
        config.validate()
        self.config = config
        self.thread_count = thread_count

    @classmethod
    def from_config(cls, config: dict) -> "PeakDetector":
        """Create a detector from the `peak_detection` and `general` sections of an alphamz config."""
        return cls(
            detector_config_from_config(config),
            thread_count=config[ConfigKeys.GENERAL][ConfigKeys.THREAD_COUNT],
        )

    @property
    def kind(self) -> str:
        return self.config.kind

    def check_spectra(self, spectra: list[Spectrum]):
        """Raise InvalidParameterError if the parameters can not be applied to all spectra."""
        self.config.validate()

        if self.kind == DetectorKind.ZSCORE:
            for spectrum in spectra:
                if len(spectrum) < self.config.lag:
                    raise InvalidParameterError(
                        f"{spectrum} contains less data points than the lag size: {self.config.lag}"
                    )

    def detect(self, spectrum: Spectrum, peak_list: PeakList | None = None) -> PeakList:
        return detect(spectrum, self.config, peak_list)

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}, kind={self.kind}>"


def detect_peaks_batch(
    spectra: list[Spectrum],
    detector: PeakDetector,
    thread_count: int | None = None,
    cancel_event: threading.Event | None = None,
) -> list[PeakList | None]:
    """Detect peaks in many spectra in parallel.

    Parameters are checked for all spectra before processing starts.
    Spectra failing with :class:`MissingPrerequisiteDataError` are logged and yield None.
    Spectra not processed because `cancel_event` was set yield None as well.

    Parameters
    ----------

    spectra : list[Spectrum]
        Spectra to process.

    detector : PeakDetector
        Configured detector.

    thread_count : int, optional
        Number of threads, values smaller than 1 are relative to the number of cores.
        By default the thread count of the detector.

    cancel_event : threading.Event, optional
        Processing stops at the next spectrum once the event is set.

    Returns
    -------
    list[PeakList | None]
        Peak lists in the order of `spectra`.

    """
    detector.check_spectra(spectra)

    if cancel_event is None:
        cancel_event = threading.Event()

    def starfunc(spectrum):
        if cancel_event.is_set():
            return None
        try:
            return detector.detect(spectrum)
        except MissingPrerequisiteDataError as e:
            logger.warning(f"Skipping {spectrum}: {e.msg} {e.user_msg}")
            return None

    if thread_count is None:
        thread_count = detector.thread_count
    thread_count = alphatims.utils.set_threads(thread_count)
    logger.progress(
        f"Detecting peaks in {len(spectra):,} spectra with {thread_count} threads"
    )

    peak_lists = []
    with ThreadPool(thread_count) as pool:
        for peak_list in tqdm(pool.imap(starfunc, spectra), total=len(spectra)):
            peak_lists.append(peak_list)

    if cancel_event.is_set():
        n_processed = sum(peak_list is not None for peak_list in peak_lists)
        logger.warning(
            f"Peak detection was cancelled after {n_processed:,} of {len(spectra):,} spectra"
        )

    return peak_lists
