import numpy as np
import pytest

from alphamz.constants.keys import UnmatchedSignalPolicy
from alphamz.data.spectrum import Spectrum
from alphamz.scoring.similarity import Weights, align, score
from alphamz.scoring.tolerance import MZTolerance

TOLERANCE = MZTolerance(0.005, 10)


def test_identical_signals():
    # Given
    library = Spectrum([100.0, 101.0, 102.0], [100.0, 30.0, 5.0])

    # When
    result = score(library, library, TOLERANCE)

    # Then
    assert result.score == pytest.approx(1.0)
    assert result.overlap == 3


def test_disjoint_signals():
    library = Spectrum([100.0, 101.0], [100.0, 30.0])
    measured = Spectrum([200.0, 201.0], [100.0, 30.0])

    assert score(library, measured, TOLERANCE) is None


def test_empty_signals():
    library = Spectrum([100.0], [100.0])
    empty = Spectrum([], [])

    assert score(library, empty, TOLERANCE) is None
    assert score(empty, library, TOLERANCE) is None


@pytest.mark.parametrize(
    "unmatched_policy, expected_score",
    [
        (UnmatchedSignalPolicy.REMOVE_ALL, 1.0),
        (UnmatchedSignalPolicy.KEEP_LIBRARY_SIGNALS, 0.8165),
        (UnmatchedSignalPolicy.KEEP_EXPERIMENTAL_SIGNALS, 1.0),
        (UnmatchedSignalPolicy.KEEP_ALL_AND_MATCH_TO_ZERO, 0.8165),
    ],
)
def test_missing_measured_signal(unmatched_policy, expected_score):
    # Given: the second library signal is not measured
    library = Spectrum([100.0, 101.0], [100.0, 50.0])
    measured = Spectrum([100.0], [100.0])

    # When
    result = score(library, measured, TOLERANCE, unmatched_policy=unmatched_policy)

    # Then
    assert result.score == pytest.approx(expected_score, abs=1e-4)
    assert result.overlap == 1


@pytest.mark.parametrize(
    "unmatched_policy, expected_score",
    [
        (UnmatchedSignalPolicy.REMOVE_ALL, 1.0),
        (UnmatchedSignalPolicy.KEEP_LIBRARY_SIGNALS, 1.0),
        (UnmatchedSignalPolicy.KEEP_EXPERIMENTAL_SIGNALS, 0.7071),
        (UnmatchedSignalPolicy.KEEP_ALL_AND_MATCH_TO_ZERO, 0.7071),
    ],
)
def test_additional_measured_signal(unmatched_policy, expected_score):
    library = Spectrum([100.0], [100.0])
    measured = Spectrum([100.0, 102.0], [100.0, 100.0])

    result = score(library, measured, TOLERANCE, unmatched_policy=unmatched_policy)

    assert result.score == pytest.approx(expected_score, abs=1e-4)


def test_most_intense_measured_signal_is_claimed():
    # Given: two measured signals within tolerance of the first library signal
    library = Spectrum([100.0, 100.002], [100.0, 30.0])
    measured = Spectrum([99.999, 100.001, 100.003], [10.0, 50.0, 20.0])

    # When
    matches = align(library, measured, TOLERANCE)

    # Then: the most intense library signal picks first
    assert np.array_equal(matches, np.array([1, 2]))


def test_claimed_signal_is_not_reused():
    library = Spectrum([100.0, 100.002], [100.0, 30.0])
    measured = Spectrum([100.001], [50.0])

    matches = align(library, measured, TOLERANCE)

    assert np.array_equal(matches, np.array([0, -1]))


def test_ppm_tolerance_applies_at_high_mz():
    # Given: 10 ppm at m/z 1000 is 0.01
    library = Spectrum([1000.0], [100.0])
    measured = Spectrum([1000.008], [100.0])

    assert score(library, measured, TOLERANCE).score == pytest.approx(1.0)
    assert score(library, measured, MZTolerance(0.005, 0)) is None


def test_min_matched_signals():
    library = Spectrum([100.0, 101.0], [100.0, 50.0])
    measured = Spectrum([100.0], [100.0])

    assert score(library, measured, TOLERANCE, min_matched_signals=2) is None

    with pytest.raises(ValueError):
        score(library, measured, TOLERANCE, min_matched_signals=0)


def test_zero_intensity_has_no_score():
    library = Spectrum([100.0], [0.0])
    measured = Spectrum([100.0], [10.0])

    assert score(library, measured, TOLERANCE) is None


def test_unknown_policy_raises():
    library = Spectrum([100.0], [100.0])

    with pytest.raises(ValueError):
        score(library, library, TOLERANCE, unmatched_policy="keep_some")


@pytest.mark.parametrize(
    "weights, expected",
    [
        (Weights.NONE, [4.0, 0.0]),
        (Weights.SQRT, [2.0, 0.0]),
        (Weights.MASSBANK, [200.0, 0.0]),
    ],
)
def test_weights(weights, expected):
    weighted = weights.apply(np.array([10.0, 20.0]), np.array([4.0, 0.0]))

    assert np.allclose(weighted, expected)


def test_weight_presets_are_read_only():
    assert Weights.NIST11.mz_factor == pytest.approx(1.3)

    with pytest.raises(TypeError):
        Weights.SQRT = Weights.NONE

    assert Weights.SQRT.name == "sqrt"


def test_weights_change_score():
    library = Spectrum([100.0, 101.0], [100.0, 10.0])
    measured = Spectrum([100.0, 101.0], [100.0, 40.0])

    sqrt_score = score(library, measured, TOLERANCE, weights=Weights.SQRT).score
    plain_score = score(library, measured, TOLERANCE, weights=Weights.NONE).score

    assert plain_score < sqrt_score < 1.0


def test_tolerance():
    tolerance = MZTolerance(0.005, 10)

    assert tolerance.get_tolerance(100.0) == pytest.approx(0.005)
    assert tolerance.get_tolerance(1000.0) == pytest.approx(0.01)
    assert tolerance.get_range(100.0) == pytest.approx((99.995, 100.005))
    assert tolerance.matches(1000.0, 1000.009)
    assert not tolerance.matches(100.0, 100.006)

    with pytest.raises(ValueError):
        MZTolerance(-0.1, 10)
