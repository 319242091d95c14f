import numpy as np
import pytest

from socmonitor.ekf import (
    DEFAULT_NC,
    DEFAULT_P,
    DEFAULT_Q,
    DEFAULT_R,
    SocEstimator,
    aposteriori,
    apriori,
    ekf_soc_opt,
)


def test_apriori_identity_keeps_state_and_adds_noise():
    p = [[2.0, 0.5], [0.5, 3.0]]
    q = [[0.1, 0.0], [0.0, 0.2]]
    x, p_new = apriori(np.eye(2), [[0.0], [0.0]], 5.0, [0.3, 0.7], q, p)
    assert np.allclose(x, [[0.3], [0.7]])
    assert np.allclose(p_new, np.array(p) + np.array(q))


def test_apriori_input_term():
    x, _ = apriori(np.eye(2), [[0.25], [-0.5]], 2.0, [0.0, 0.0], np.zeros((2, 2)), np.eye(2))
    assert np.allclose(x, [[0.5], [-1.0]])


def test_apriori_keeps_covariance_symmetric():
    a = [[1.0, 0.0], [0.0, 0.4]]
    _, p_new = apriori(a, [[0.0], [0.0]], 0.0, [0.0, 0.0], DEFAULT_Q, [[2.0, 0.3], [0.3, 1.0]])
    assert np.allclose(p_new, p_new.T)


def test_aposteriori_zero_error_keeps_state():
    x, _, _ = aposteriori([0.4, 0.1], DEFAULT_P, [[1.5, -1.0]], DEFAULT_R, 0.0)
    assert np.allclose(x, [[0.4], [0.1]])


def test_aposteriori_perfect_measurement():
    x, p, kg = aposteriori([0.4, 0.1], [[2.0, 0.0], [0.0, 3.0]], [[1.0, 0.0]], 0.0, 0.25)
    assert kg[0, 0] == pytest.approx(1.0)
    assert x[0, 0] == pytest.approx(0.65)
    assert p[0, 0] == pytest.approx(0.0)


def test_aposteriori_reduces_uncertainty():
    prior = np.array(DEFAULT_P)
    _, p, _ = aposteriori([0.5, 0.0], prior, [[1.2, -1.0]], DEFAULT_R, 0.1)
    assert p[0, 0] < prior[0, 0]
    assert p[0, 0] + p[1, 1] < prior[0, 0] + prior[1, 1]


def test_aposteriori_zero_innovation_raises():
    with pytest.raises(ZeroDivisionError):
        aposteriori([0.5, 0.0], np.zeros((2, 2)), [[1.0, -1.0]], 0.0, 0.1)


def test_ekf_reports_voltage_error():
    result = ekf_soc_opt(0.5, 3.3, 25.0, DEFAULT_NC, [0.6, 0.0], DEFAULT_P, DEFAULT_Q, DEFAULT_R)
    assert result.vt_error == pytest.approx(3.3 - result.vt)


@pytest.mark.parametrize("voltage", [-50.0, 0.0, 3.7, 50.0])
def test_ekf_soc_stays_in_unit_interval(voltage):
    result = ekf_soc_opt(0.5, voltage, 25.0, DEFAULT_NC, [0.5, 0.0], DEFAULT_P, DEFAULT_Q, DEFAULT_R)
    assert 0.0 <= result.soc <= 1.0


def test_ekf_does_not_mutate_inputs():
    x = np.array([[0.5], [0.0]])
    p = np.array(DEFAULT_P)
    ekf_soc_opt(0.5, 3.0, 25.0, DEFAULT_NC, x, p, DEFAULT_Q, DEFAULT_R)
    assert np.array_equal(x, [[0.5], [0.0]])
    assert np.array_equal(p, np.array(DEFAULT_P))


def test_estimator_starts_full():
    assert SocEstimator().soc == 1.0


def test_estimator_low_voltage_lowers_soc():
    estimator = SocEstimator()
    estimator.step(0.0, 0.0, 25.0)
    assert estimator.soc < 1.0


def test_estimator_step_matches_function():
    estimator = SocEstimator()
    result = estimator.step(0.3, 3.6, 25.0)
    expected = ekf_soc_opt(0.3, 3.6, 25.0, DEFAULT_NC, [1.0, 0.0], DEFAULT_P, DEFAULT_Q, DEFAULT_R)
    assert np.allclose(result.x, expected.x)
    assert np.allclose(estimator.p, expected.p)
    assert estimator.vt_error == pytest.approx(expected.vt_error)


def test_estimator_repeated_steps_stay_bounded():
    estimator = SocEstimator()
    for voltage in (4.5, 3.0, 0.5, 3.8, 2.0) * 4:
        estimator.step(-0.2, voltage, 25.0)
        assert 0.0 <= estimator.soc <= 1.0
        assert np.all(np.isfinite(estimator.p))