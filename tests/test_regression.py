import math

import pytest

from infraforecast.ai.regression import LinearModel, linear_regression, residual_std_dev


class TestLinearRegression:
    def test_empty_series_is_flat_zero(self):
        model = linear_regression([])
        assert model.slope == 0
        assert model.intercept == 0
        assert model.predict(12) == 0

    def test_single_point_is_constant(self):
        model = linear_regression([42])
        assert model.slope == 0
        assert model.intercept == 42
        assert model.predict(0) == 42
        assert model.predict(1000) == 42

    def test_exact_index_fit(self):
        model = linear_regression([10, 20, 30])
        assert model.slope == pytest.approx(10)
        assert model.intercept == pytest.approx(10)
        assert model.predict(3) == pytest.approx(40)

    def test_flat_series_has_zero_slope(self):
        model = linear_regression([55, 55, 55, 55])
        assert model.slope == pytest.approx(0)
        assert model.intercept == pytest.approx(55)

    def test_predict_is_clamped(self):
        model = linear_regression([10, 20, 30])
        assert model.predict(10) == 100
        assert model.predict(-5) == 0

    def test_deterministic(self):
        values = [3.5, 7.25, 1.0, 9.75, 4.0]
        assert linear_regression(values) == linear_regression(list(values))

    def test_model_is_immutable(self):
        model = LinearModel(slope=1.0, intercept=2.0)
        with pytest.raises(AttributeError):
            model.slope = 3.0


class TestResidualStdDev:
    def test_perfect_fit_has_no_dispersion(self):
        values = [10, 20, 30]
        model = linear_regression(values)
        assert residual_std_dev(values, model.predict) == pytest.approx(0, abs=1e-9)

    def test_zigzag_dispersion(self):
        values = [0, 10, 0, 10]
        model = linear_regression(values)
        # fit 2 + 2x, residuals -2, 6, -6, 2
        assert model.slope == pytest.approx(2)
        assert residual_std_dev(values, model.predict) == pytest.approx(math.sqrt(20))

    @pytest.mark.parametrize("values", [[], [17]])
    def test_short_series_returns_zero(self, values):
        assert residual_std_dev(values, lambda x: 0.0) == 0

    def test_clamped_fit_is_mean_centred(self):
        values = [0, 0, 0, 0, 100]
        model = linear_regression(values)
        # fit -20 + 20x clamps to 0 on day 0, residuals 0, 0, -20, -40, 40 (mean -4)
        assert model.predict(0) == 0
        assert residual_std_dev(values, model.predict) == pytest.approx(math.sqrt(704))
