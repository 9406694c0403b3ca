"""Refinement of compound annotations by isotope pattern similarity.

For every annotation of a feature row the isotope pattern of the ionized formula is predicted and compared to the
measured isotope pattern of the row. Annotations with a low similarity are removed, the remaining annotations are
sorted by score.

Measured signals are selected by the absolute charge of the annotation. If the row has no isotope pattern for this
charge, the mass list of the representative MS1 scan is used instead.

Predicted patterns are cached per ionized formula for the duration of one batch, so annotations sharing a
formula and ion type trigger only one prediction.

Example
-------

.. code-block:: python

    refiner = AnnotationRefiner.from_config(load_config(["experiment.yaml"]))
    report_df = refiner.refine_rows(rows)

"""

# native imports
import logging
import math
import threading
from multiprocessing.pool import ThreadPool

# third party imports
import alphatims.utils
import pandas as pd
from tqdm import tqdm

# alphamz imports
from alphamz import reporting  # noqa: F401 registers logger.progress
from alphamz.annotation.config import IsotopeRefinerConfig
from alphamz.annotation.containers import CompoundAnnotation, FeatureRow
from alphamz.constants.keys import (
    AnnotationReportCols,
    AnnotationState,
    ConfigKeys,
    UnmatchedSignalPolicy,
)
from alphamz.data.spectrum import Spectrum
from alphamz.exceptions import MissingPrerequisiteDataError
from alphamz.isotopes.cache import IsotopePatternCache
from alphamz.isotopes.pattern import MultiChargeStateIsotopePattern
from alphamz.isotopes.prediction import IsotopePatternPredictor
from alphamz.scoring.similarity import Weights, score

logger = logging.getLogger()


def sort_annotations_by_score(
    annotations: list[CompoundAnnotation],
) -> list[CompoundAnnotation]:
    """Sort annotations by isotope pattern score, descending. Missing and NaN scores are sorted last."""

    def sort_key(annotation):
        if not annotation.has_score:
            return (1, 0.0)
        return (0, -annotation.isotope_pattern_score)

    return sorted(annotations, key=sort_key)


def get_measured_signals(
    row: FeatureRow,
) -> tuple[dict[int, Spectrum], Spectrum | None]:
    """Measured isotope signals of a row by absolute charge, and the MS1 fallback.

    Raises
    ------
    MissingPrerequisiteDataError
        If the representative scan has no mass list.

    """
    signals_by_charge = {}
    pattern = row.best_isotope_pattern
    if isinstance(pattern, MultiChargeStateIsotopePattern):
        for charge_pattern in pattern.patterns:
            signals_by_charge[charge_pattern.abs_charge] = charge_pattern
    elif pattern is not None:
        signals_by_charge[pattern.abs_charge] = pattern

    fallback = None
    scan = row.representative_scan
    if scan is not None:
        if scan.mass_list is None:
            raise MissingPrerequisiteDataError(
                f"Representative scan {scan} of row {row.row_id} has no mass list"
            )
        fallback = scan.mass_list

    return signals_by_charge, fallback


class AnnotationRefiner:
    def __init__(
        self,
        config: IsotopeRefinerConfig | None = None,
        predictor: IsotopePatternPredictor | None = None,
        thread_count: int = 0,
    ):
        """Score compound annotations by isotope pattern similarity and remove poor matches.

        Parameters
        ----------

        config : IsotopeRefinerConfig, optional
            Parameters of the refinement. By default the default parameters.

        predictor : IsotopePatternPredictor, optional
            Predictor for isotope patterns. By default a new predictor.

        thread_count : int, optional
            Default number of threads of batch refinement. By default 0 (all cores).

        """
        self.config = config if config is not None else IsotopeRefinerConfig()
        self.config.validate()
        self.predictor = predictor if predictor is not None else IsotopePatternPredictor()
        self.resolutions = self.config.get_resolutions()
        self.thread_count = thread_count

    @classmethod
    def from_config(cls, config: dict) -> "AnnotationRefiner":
        """Create a refiner from the `isotope_refinement` and `general` sections of an alphamz config."""
        return cls(
            IsotopeRefinerConfig.from_config(config[ConfigKeys.ISOTOPE_REFINEMENT]),
            thread_count=config[ConfigKeys.GENERAL][ConfigKeys.THREAD_COUNT],
        )

    def score_single_resolution(
        self,
        annotation: CompoundAnnotation,
        measured: Spectrum,
        cache: IsotopePatternCache,
    ) -> float:
        """Library signal score at the configured tolerance, 0 if no signal overlaps."""
        ion_formula = annotation.get_ionized_formula()
        ion_type = annotation.ion_type
        tolerance = self.config.tolerance
        merge_width = tolerance.get_tolerance(ion_formula.monoisotopic_mz)

        predicted = cache.get_or_compute(
            ion_formula,
            lambda: self.predictor.predict(
                ion_formula,
                self.config.min_intensity,
                merge_width,
                ion_type.charge,
                ion_type.polarity,
            ),
        )

        result = score(
            predicted,
            measured,
            tolerance,
            weights=Weights.SQRT,
            unmatched_policy=UnmatchedSignalPolicy.KEEP_LIBRARY_SIGNALS,
        )
        return result.score if result is not None else 0.0

    def score_multi_resolution(
        self,
        annotation: CompoundAnnotation,
        measured: Spectrum,
        cache: IsotopePatternCache,
    ) -> float:
        """Best combined score over all resolutions, the best resolution is written to the annotation."""
        ion_formula = annotation.get_ionized_formula()
        ion_type = annotation.ion_type
        weight = self.config.library_weight

        best_score = 0.0
        best_resolution = None

        for resolution in self.resolutions:
            try:
                predicted_patterns = cache.get_or_compute(
                    ion_formula,
                    lambda: self.predictor.predict_for_resolutions(
                        ion_formula,
                        self.config.min_intensity,
                        self.resolutions,
                        ion_type.charge,
                        ion_type.polarity,
                    ),
                )
                predicted = predicted_patterns[resolution]
                tolerance = resolution.to_tolerance(
                    predicted.get_mz_value(predicted.base_peak_index)
                )

                plain = score(
                    predicted,
                    measured,
                    tolerance,
                    weights=Weights.SQRT,
                    unmatched_policy=UnmatchedSignalPolicy.KEEP_ALL_AND_MATCH_TO_ZERO,
                )
                library = score(
                    predicted,
                    measured,
                    tolerance,
                    weights=Weights.SQRT,
                    unmatched_policy=UnmatchedSignalPolicy.KEEP_LIBRARY_SIGNALS,
                )
            except Exception as e:
                logger.warning(
                    f"Cannot match isotope pattern of '{annotation.compound_name}' at resolution {resolution}: {e}"
                )
                continue

            if plain is None or library is None:
                continue

            combined = (plain.score + weight * library.score) / (1 + weight)
            # later resolutions win ties
            if combined >= best_score:
                best_score = combined
                best_resolution = resolution

        annotation.best_resolution = best_resolution
        return best_score

    def score_annotation(
        self,
        annotation: CompoundAnnotation,
        measured: Spectrum,
        cache: IsotopePatternCache,
    ) -> float:
        """Isotope pattern score of an annotation, 0 if the annotation can not be scored."""
        try:
            if self.config.multi_resolution:
                return self.score_multi_resolution(annotation, measured, cache)
            return self.score_single_resolution(annotation, measured, cache)
        except Exception as e:
            logger.warning(
                f"Cannot match isotope pattern of '{annotation.compound_name}', "
                f"maybe formula or ion type are missing: {e}"
            )
            return 0.0

    def refine_row(
        self,
        row: FeatureRow,
        cache: IsotopePatternCache | None = None,
    ) -> list[CompoundAnnotation]:
        """Score all annotations of a row and replace them by the retained annotations, sorted by score.

        Parameters
        ----------

        row : FeatureRow
            Row to refine. Its annotations are replaced as a whole.

        cache : IsotopePatternCache, optional
            Cache of predicted patterns. Must only be shared between calls with the same resolution mode.

        Returns
        -------
        list[CompoundAnnotation]
            All annotations of the row with their final state, including discarded ones.

        Raises
        ------
        MissingPrerequisiteDataError
            If the representative scan of the row has no mass list. The row is left unchanged.

        """
        if cache is None:
            cache = IsotopePatternCache()

        signals_by_charge, fallback = get_measured_signals(row)

        annotations = row.compound_annotations
        retained = []
        for annotation in annotations:
            measured = signals_by_charge.get(annotation.abs_charge, fallback)
            if measured is None:
                # nothing to compare with, e.g. a feature list without spectra
                annotation.state = AnnotationState.DISCARDED
                continue

            annotation.isotope_pattern_score = self.score_annotation(
                annotation, measured, cache
            )
            annotation.state = AnnotationState.SCORED

            if annotation.isotope_pattern_score >= self.config.min_isotope_score:
                annotation.state = AnnotationState.RETAINED
                retained.append(annotation)
            else:
                annotation.state = AnnotationState.DISCARDED

        row.set_compound_annotations(sort_annotations_by_score(retained))
        return annotations

    def refine_rows(
        self,
        rows: list[FeatureRow],
        thread_count: int | None = None,
        cancel_event: threading.Event | None = None,
    ) -> pd.DataFrame:
        """Refine the annotations of many rows in parallel.

        All rows share one cache of predicted patterns, discarded after the call.
        Rows failing with :class:`MissingPrerequisiteDataError` are logged and skipped.

        Parameters
        ----------

        rows : list[FeatureRow]
            Rows to refine.

        thread_count : int, optional
            Number of threads, values smaller than 1 are relative to the number of cores.
            By default the thread count of the refiner.

        cancel_event : threading.Event, optional
            Rows not yet started are skipped once the event is set.

        Returns
        -------
        pd.DataFrame
            One line per scored annotation with the columns of :class:`alphamz.constants.keys.AnnotationReportCols`.

        """
        if cancel_event is None:
            cancel_event = threading.Event()

        cache = IsotopePatternCache(
            "multi resolution" if self.config.multi_resolution else "single resolution"
        )

        def starfunc(row):
            if cancel_event.is_set():
                return None
            try:
                return row.row_id, self.refine_row(row, cache)
            except MissingPrerequisiteDataError as e:
                logger.warning(f"Skipping row {row.row_id}: {e.msg} {e.user_msg}")
                return None

        if thread_count is None:
            thread_count = self.thread_count
        thread_count = alphatims.utils.set_threads(thread_count)
        logger.progress(
            f"Refining annotations of {len(rows):,} rows by isotope pattern with {thread_count} threads"
        )

        records = []
        n_refined = 0
        with ThreadPool(thread_count) as pool:
            for result in tqdm(pool.imap(starfunc, rows), total=len(rows)):
                if result is None:
                    continue
                n_refined += 1
                row_id, annotations = result
                records.extend(
                    _report_record(row_id, annotation)
                    for annotation in annotations
                    if annotation.isotope_pattern_score is not None
                )

        if cancel_event.is_set():
            logger.warning(
                f"Annotation refinement was cancelled after {n_refined:,} of {len(rows):,} rows"
            )

        cache.log_stats()

        return pd.DataFrame(records, columns=AnnotationReportCols.get_values())


def _report_record(row_id: int, annotation: CompoundAnnotation) -> dict:
    score_value = annotation.isotope_pattern_score
    return {
        AnnotationReportCols.ROW_ID: row_id,
        AnnotationReportCols.COMPOUND_NAME: annotation.compound_name,
        AnnotationReportCols.ION_TYPE: str(annotation.ion_type)
        if annotation.ion_type is not None
        else None,
        AnnotationReportCols.FORMULA: annotation.formula.to_string()
        if annotation.formula is not None
        else None,
        AnnotationReportCols.SCORE: score_value if score_value is not None else math.nan,
        AnnotationReportCols.BEST_RESOLUTION: str(annotation.best_resolution)
        if annotation.best_resolution is not None
        else None,
        AnnotationReportCols.STATE: annotation.state,
        AnnotationReportCols.RETAINED: annotation.state == AnnotationState.RETAINED,
    }
