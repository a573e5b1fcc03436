"""
Interactive-style GP visualisation rendered to files.

Reproduces the three views of the GP explorer for one example function:
  1. Posterior mean with 95% confidence band, training samples and true function
  2. Sample paths drawn from the posterior
  3. Sample paths drawn from the standard (unconditioned) GP prior
"""

import os
import logging
import numpy as np
import pandas as pd
import matplotlib.pyplot as plt
from sklearn.metrics import mean_squared_error

import sys
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from gpviz import GPEngine, GPVizError
from gpviz.examples import Example, DEFAULT_NUM_FN_SAMPLES, DEFAULT_NUM_STD_GP_SAMPLES
from gpviz.sampling import standard_grid

logging.basicConfig(level=logging.INFO, format='%(levelname)s: %(message)s')
logger = logging.getLogger(__name__)

# Hyperparameters (prior noise "None" matches the sample noise)
V, L, S, M = 1.0, 1.0, None, "auto"
FUNCTION = 0
SAMPLE_METHOD = "systematic"
Y_NOISE = 0.1
SEED = 42


def plot_regression(example, posterior, path):
    lower, upper = posterior.confidence_band()
    xt = example.Xt.ravel()

    plt.figure(figsize=(12, 6))
    x_min, x_max = example.function.x_range
    plt.axvspan(x_min, x_max, color='red', alpha=0.06, label='Sample range')
    plt.scatter(example.X.ravel(), example.y.ravel(), c='black', marker='x', s=40,
                label='Samples', zorder=5)
    plt.plot(xt, example.yt.ravel(), 'r-', alpha=0.7, linewidth=1.5, label='True function')
    plt.plot(xt, posterior.mean, 'b-', linewidth=2, label='Maximum a posteriori estimate')
    plt.fill_between(xt, lower, upper, alpha=0.15, color='blue', label='95% confidence interval')

    plt.title('Gaussian Regression', fontsize=14, fontweight='bold')
    plt.legend(loc='upper left', fontsize=10)
    plt.grid(True, alpha=0.3)
    plt.tight_layout()
    plt.savefig(path, dpi=150, bbox_inches='tight')
    logger.info(f"Plot saved to {path}")
    plt.close()


def plot_sample_paths(x, draws, title, path, sample_range=None):
    plt.figure(figsize=(12, 6))
    if sample_range is not None and sample_range[1] - sample_range[0] > 0.5:
        plt.axvspan(*sample_range, color='red', alpha=0.06)

    n_draws = draws.shape[1]
    cmap = plt.get_cmap('autumn')
    for i in range(n_draws):
        plt.plot(x, draws[:, i], color=cmap((i + 1) / n_draws),
                 alpha=min(1.0, 0.3 + 1.0 / n_draws), linewidth=1.2)

    plt.title(title, fontsize=14, fontweight='bold')
    plt.grid(True, alpha=0.3)
    plt.tight_layout()
    plt.savefig(path, dpi=150, bbox_inches='tight')
    logger.info(f"Plot saved to {path}")
    plt.close()


def main():
    """Run the three GP views for the configured example."""

    output_dir = os.path.join(os.path.dirname(__file__), 'outputs')
    os.makedirs(output_dir, exist_ok=True)

    example = Example(FUNCTION, sample_method=SAMPLE_METHOD, y_noise_std=Y_NOISE, seed=SEED)
    engine = GPEngine()
    s = example.y_noise_std if S is None else S

    try:
        handle = engine.fit(example.X, example.y, v=V, l=L, s=s, m=M)
        posterior = engine.predict(handle, example.Xt)
    except GPVizError as e:
        logger.error(e.describe())
        return

    rmse = np.sqrt(mean_squared_error(example.yt.ravel(), posterior.mean))
    logger.info(f"Resolved prior mean: {handle.prior_mean_:.4f}")
    logger.info(f"RMSE against true function over prediction range: {rmse:.4f}")

    lower, upper = posterior.confidence_band()
    results_df = pd.DataFrame({
        'x': example.Xt.ravel(),
        'y_true': example.yt.ravel(),
        'mean': posterior.mean,
        'variance': posterior.variance,
        'lower_95': lower,
        'upper_95': upper
    })
    results_path = os.path.join(output_dir, 'gp_predictions.csv')
    results_df.to_csv(results_path, index=False)
    logger.info(f"Predictions saved to {results_path}")

    plot_regression(example, posterior, os.path.join(output_dir, 'gp_regression.png'))

    Xd, draws = example.take_samples(DEFAULT_NUM_FN_SAMPLES, v=V, l=L, s=S, m=M, random_state=SEED)
    plot_sample_paths(Xd.ravel(), draws, 'Samples of Gaussian Process',
                      os.path.join(output_dir, 'gp_posterior_samples.png'),
                      sample_range=example.function.x_range)

    grid = standard_grid()
    prior_draws = engine.sample_prior(DEFAULT_NUM_STD_GP_SAMPLES, grid, v=V, l=L, random_state=SEED)
    plot_sample_paths(grid.ravel(), prior_draws, 'Samples of Standard Gaussian Process',
                      os.path.join(output_dir, 'gp_prior_samples.png'))

    logger.info("\nGP visualisation completed successfully!")


if __name__ == '__main__':
    main()
