"""
Unit tests for GP regression and sampling.

Tests core numerical operations and the posterior properties the
visualisation relies on.
"""

import pytest
import numpy as np

from gpviz.base import stable_cholesky, cholesky_solve, clamp_variance
from gpviz.errors import DimensionMismatch, SingularMatrix
from gpviz.kernels import RBF, squared_pairwise_distance
from gpviz.linalg import (
    add, subtract, scale, multiply, transpose, identity, diagonal, frobenius_norm, invert
)
from gpviz.regression import GaussianProcessRegressor
from gpviz.sampling import MultivariateNormalSampler, sample_prior, sample_from_posterior


def _sin_training_set():
    X = np.array([-np.pi, -np.pi / 2, 0.0, np.pi / 2, np.pi]).reshape(-1, 1)
    y = np.sin(X)
    return X, y


class TestBaseOperations:
    """Test base numerical utilities."""
    
    def test_cholesky_solve(self):
        """Test that cholesky_solve matches direct solve."""
        np.random.seed(42)
        n = 50
        
        # Create random SPD matrix
        A = np.random.randn(n, n)
        K = A @ A.T + np.eye(n) * 0.1
        b = np.random.randn(n)
        
        L = stable_cholesky(K)
        x_chol = cholesky_solve(L, b)
        x_direct = np.linalg.solve(K, b)
        
        np.testing.assert_allclose(x_chol, x_direct, rtol=1e-6, atol=1e-8)
    
    def test_stable_cholesky_with_jitter(self):
        """Test that stable_cholesky handles singular PSD matrices."""
        n = 10
        K = np.ones((n, n))
        
        L = stable_cholesky(K)
        
        assert np.allclose(L, np.tril(L))
        assert np.allclose(K, L @ L.T, atol=1e-6)
    
    def test_stable_cholesky_exhausted_raises(self):
        """An indefinite matrix cannot be rescued by small jitter."""
        K = np.array([[1.0, 0.0], [0.0, -1.0]])
        with pytest.raises(SingularMatrix):
            stable_cholesky(K, jitter=1e-10, max_retries=3)
    
    def test_clamp_variance(self):
        var = np.array([0.5, -1e-14, 0.0])
        clamped = clamp_variance(var)
        assert np.all(clamped >= 0)
        np.testing.assert_allclose(clamped, [0.5, 0.0, 0.0])


class TestLinearAlgebra:
    """Test the dense linear-algebra surface."""

    def test_elementwise_ops(self):
        A = np.array([[1.0, 2.0], [3.0, 4.0]])
        B = np.array([[0.5, 0.5], [1.0, 1.0]])
        np.testing.assert_allclose(add(A, B), A + B)
        np.testing.assert_allclose(subtract(A, B), A - B)

    def test_elementwise_shape_mismatch(self):
        with pytest.raises(DimensionMismatch):
            add(np.ones((2, 2)), np.ones((2, 3)))
        with pytest.raises(DimensionMismatch):
            subtract(np.ones((3, 1)), np.ones((1, 3)))

    def test_scale(self):
        A = np.array([[1.0, -2.0], [0.5, 4.0]])
        np.testing.assert_allclose(scale(A, 3.0), 3.0 * A)
        assert not np.shares_memory(scale(A, 1.0), A)

    def test_multiply(self):
        A = np.arange(6.0).reshape(2, 3)
        B = np.arange(12.0).reshape(3, 4)
        np.testing.assert_allclose(multiply(A, B), A @ B)
        with pytest.raises(DimensionMismatch):
            multiply(A, A)

    def test_results_do_not_alias_inputs(self):
        A = np.ones((3, 3))
        for result in (add(A, A), transpose(A), diagonal(A), multiply(A, identity(3))):
            assert not np.shares_memory(result, A)

    def test_transpose_identity_diagonal(self):
        A = np.arange(6.0).reshape(2, 3)
        np.testing.assert_array_equal(transpose(A), A.T)
        np.testing.assert_array_equal(identity(3, 2.5), 2.5 * np.eye(3))
        np.testing.assert_array_equal(diagonal(np.diag([1.0, 2.0])), [[1.0], [2.0]])
        with pytest.raises(DimensionMismatch):
            diagonal(A)

    def test_frobenius_norm(self):
        assert frobenius_norm(np.array([[3.0, 4.0]])) == pytest.approx(5.0)

    def test_invert_spd(self):
        rng = np.random.default_rng(0)
        A = rng.standard_normal((8, 8))
        K = A @ A.T + np.eye(8)
        K_inv = invert(K)
        np.testing.assert_allclose(K_inv @ K, np.eye(8), atol=1e-8)
        np.testing.assert_allclose(K_inv, K_inv.T)

    def test_invert_singular_raises(self):
        with pytest.raises(SingularMatrix):
            invert(np.ones((3, 3)))

    def test_invert_ill_conditioned_raises(self):
        with pytest.raises(SingularMatrix) as excinfo:
            invert(np.diag([1.0, 1e-14]))
        assert excinfo.value.condition_number > 1e12


class TestKernels:
    """Test the RBF kernel."""
    
    def test_rbf_kernel_symmetry(self):
        """K(X, X) must be exactly symmetric."""
        rng = np.random.default_rng(42)
        X = rng.standard_normal((12, 3))
        K = RBF(vertical_scale=1.3, length_scale=0.7).evaluate(X, X)
        np.testing.assert_array_equal(K, K.T)
    
    def test_rbf_cross_symmetry(self):
        rng = np.random.default_rng(42)
        kernel = RBF(vertical_scale=2.0, length_scale=1.0)
        X1 = rng.standard_normal((10, 3))
        X2 = rng.standard_normal((15, 3))
        np.testing.assert_allclose(kernel(X1, X2), kernel(X2, X1).T, rtol=1e-12)
    
    def test_squared_distance_zero_diagonal(self):
        X = np.random.default_rng(3).standard_normal((9, 2))
        D = squared_pairwise_distance(X, X)
        np.testing.assert_array_equal(np.diag(D), np.zeros(9))
        assert D.shape == (9, 9)
    
    def test_rbf_formula_known_value(self):
        """k(x, x') = v² exp(−‖x−x'‖²/(2l²))"""
        k = RBF(vertical_scale=2.0, length_scale=2.0)
        K = k(np.array([[1.0, 0.0]]), np.array([[0.0, 0.0]]))
        assert K[0, 0] == pytest.approx(4.0 * np.exp(-0.5 * 1.0 / 4.0), rel=1e-12)
    
    def test_rbf_self_covariance_is_v_squared(self):
        k = RBF(vertical_scale=1.5, length_scale=0.3)
        X = np.random.default_rng(1).standard_normal((6, 2))
        np.testing.assert_allclose(np.diag(k(X, X)), 2.25, rtol=1e-12)
        np.testing.assert_allclose(k(X, diag=True), 2.25)
    
    def test_rbf_monotonically_decreasing_with_distance(self):
        k = RBF()
        anchor = np.array([[0.0]])
        cov_vals = [k(anchor, np.array([[d]]))[0, 0] for d in [0.0, 0.5, 1.0, 2.0, 5.0]]
        assert all(a > b for a, b in zip(cov_vals, cov_vals[1:]))
    
    def test_column_mismatch_raises(self):
        with pytest.raises(DimensionMismatch):
            RBF()(np.ones((3, 2)), np.ones((3, 1)))


class TestGPRegression:
    """Test GP regression implementation."""
    
    def test_regression_prediction_shape(self):
        """covariance.rows == Xt.rows == covariance.cols == variance.length"""
        rng = np.random.default_rng(42)
        X = rng.standard_normal((20, 3))
        y = rng.standard_normal(20)
        Xt = rng.standard_normal((7, 3))
        
        posterior = GaussianProcessRegressor(X, y, v=1.0, l=1.0, s=0.1).predict(Xt)
        
        assert posterior.mean.shape == (7,)
        assert posterior.covariance.shape == (7, 7)
        assert posterior.variance.shape == (7,)
        np.testing.assert_allclose(posterior.covariance, posterior.covariance.T, rtol=1e-12)
        np.testing.assert_array_equal(np.diag(posterior.covariance), posterior.variance)
    
    def test_regression_interpolation_no_noise(self):
        """With s = 0 the posterior interpolates the training targets."""
        X, y = _sin_training_set()
        gp = GaussianProcessRegressor(X, y, v=1.0, l=1.0, s=0.0, m=0.0)
        
        posterior = gp.predict(X)
        
        # Residual is eps (K + eps I)^-1 y for the fixed jitter eps, about 1e-6 here.
        np.testing.assert_allclose(posterior.mean, y.ravel(), atol=1e-5)
        assert np.all(posterior.variance <= gp.jitter + 1e-9)
    
    def test_sin_scenario(self):
        X, y = _sin_training_set()
        gp = GaussianProcessRegressor(X, y, v=1.0, l=1.0, s=0.0, m=0.0)
        posterior = gp.predict(np.array([[0.0]]))
        assert abs(posterior.mean[0] - np.sin(0.0)) < 0.05
        assert posterior.variance[0] < 0.1
    
    def test_regression_variance_nonnegative(self):
        rng = np.random.default_rng(42)
        X = rng.standard_normal((15, 3))
        y = rng.standard_normal(15)
        Xt = np.vstack([rng.standard_normal((20, 3)), X])
        
        for s in (0.0, 0.1):
            posterior = GaussianProcessRegressor(X, y, s=s).predict(Xt)
            assert np.all(posterior.variance >= -1e-9)
    
    def test_vertical_scale_scales_covariance(self):
        """Doubling v multiplies the covariance by 4 and leaves the mean unchanged."""
        X, y = _sin_training_set()
        Xt = np.linspace(-4, 4, 9).reshape(-1, 1)
        
        p1 = GaussianProcessRegressor(X, y, v=1.0, l=1.0, s=0.0, m=0.0).predict(Xt)
        p2 = GaussianProcessRegressor(X, y, v=2.0, l=1.0, s=0.0, m=0.0).predict(Xt)
        
        np.testing.assert_allclose(p2.covariance, 4.0 * p1.covariance, atol=1e-5)
        np.testing.assert_allclose(p2.mean, p1.mean, atol=1e-5)
        assert p2.mean.shape == p1.mean.shape
    
    def test_short_length_scale_reverts_to_prior(self):
        X = np.array([[0.0], [1.0], [2.0]])
        y = np.array([1.0, 2.0, 3.0])
        gp = GaussianProcessRegressor(X, y, v=1.5, l=1e-3, s=0.1, m="auto")
        
        K = gp.kernel(X, X)
        assert np.all(np.abs(K - np.diag(np.diag(K))) < 1e-12)
        
        posterior = gp.predict(np.array([[10.0], [0.5]]))
        np.testing.assert_allclose(posterior.mean, [2.0, 2.0], atol=1e-12)
        np.testing.assert_allclose(posterior.variance, [2.25, 2.25], atol=1e-12)
    
    def test_prior_mean_auto_uses_data_mean(self):
        X, y = _sin_training_set()
        y = y + 3.0
        gp = GaussianProcessRegressor(X, y)
        assert gp.prior_mean_ == pytest.approx(3.0)
        far = gp.predict(np.array([[50.0]]))
        assert far.mean[0] == pytest.approx(3.0)
    
    def test_predict_mean_matches_predict(self):
        X, y = _sin_training_set()
        gp = GaussianProcessRegressor(X, y, s=0.2, m=0.5)
        Xt = np.linspace(-3, 3, 11)
        np.testing.assert_allclose(gp.predict_mean(Xt), gp.predict(Xt).mean)
    
    def test_confidence_band(self):
        X, y = _sin_training_set()
        posterior = GaussianProcessRegressor(X, y, s=0.1).predict(np.linspace(-5, 5, 21))
        lower, upper = posterior.confidence_band()
        np.testing.assert_allclose(upper - lower, 2 * 1.96 * np.sqrt(posterior.variance))


class TestSampling:
    """Test multivariate normal draws."""

    def test_standard_normal_scenario(self):
        draws = MultivariateNormalSampler([0.0], [[1.0]]).sample(1000, random_state=1234)
        assert draws.shape == (1, 1000)
        assert abs(np.mean(draws)) < 0.1
        assert abs(np.var(draws) - 1.0) < 0.1

    def test_empirical_moments_2d(self):
        mean = np.array([1.0, -1.0])
        cov = np.array([[2.0, 0.8], [0.8, 1.0]])
        draws = MultivariateNormalSampler(mean, cov).sample(20000, random_state=0)
        np.testing.assert_allclose(draws.mean(axis=1), mean, atol=0.05)
        np.testing.assert_allclose(np.cov(draws), cov, atol=0.1)

    def test_seed_reproducibility(self):
        sampler = MultivariateNormalSampler(np.zeros(3), np.eye(3))
        np.testing.assert_array_equal(sampler.sample(5, random_state=7), sampler.sample(5, random_state=7))
        assert not np.allclose(sampler.sample(5, random_state=7), sampler.sample(5, random_state=8))

    def test_singular_covariance_uses_jitter(self):
        draws = MultivariateNormalSampler.zero_mean(np.ones((5, 5))).sample(10, random_state=0)
        assert draws.shape == (5, 10)
        for i in range(1, 5):
            np.testing.assert_allclose(draws[i], draws[0], atol=1e-3)

    def test_invalid_num_draws(self):
        sampler = MultivariateNormalSampler([0.0], [[1.0]])
        for bad in (0, -3, 2.5, True):
            with pytest.raises(ValueError):
                sampler.sample(bad)

    def test_shape_mismatch(self):
        with pytest.raises(DimensionMismatch):
            MultivariateNormalSampler(np.zeros(2), np.eye(3))
        with pytest.raises(DimensionMismatch):
            MultivariateNormalSampler(np.zeros(2), np.ones((2, 3)))

    def test_posterior_draws_pass_through_training_points(self):
        X, y = _sin_training_set()
        gp = GaussianProcessRegressor(X, y, s=0.0, m=0.0)
        draws = sample_from_posterior(gp, 10, X, random_state=3)
        assert draws.shape == (5, 10)
        assert np.all(np.abs(draws - y) < 1e-2)

    def test_prior_draws(self):
        grid = np.linspace(-1, 1, 5).reshape(-1, 1)
        draws = sample_prior(5000, grid, v=2.0, l=0.5, random_state=11)
        assert draws.shape == (5, 5000)
        np.testing.assert_allclose(draws.mean(axis=1), 0.0, atol=0.15)
        np.testing.assert_allclose(draws.var(axis=1), 4.0, atol=0.4)


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
