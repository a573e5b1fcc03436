"""
Hyperparameter sweep for GP regression on a synthetic example.

Hyperparameters are user-supplied, not learned: this script only shows how the
posterior responds as the length scale and vertical scale vary, recording the
fit to the true function and the average predictive variance.
"""

import os
import logging
import numpy as np
import pandas as pd
import matplotlib.pyplot as plt
from sklearn.metrics import mean_squared_error

import sys
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from gpviz import GaussianProcessRegressor, GPVizError
from gpviz.examples import Example

logging.basicConfig(level=logging.INFO, format='%(levelname)s: %(message)s')
logger = logging.getLogger(__name__)


def hyperparameter_scan(example):
    """Sweep (l, v) and collect prediction quality."""

    length_scales = [0.1, 0.5, 1.0, 2.0, 5.0]
    vertical_scales = [0.5, 1.0, 2.0]

    results = []
    logger.info(
        f"Sweep: {len(length_scales)}×{len(vertical_scales)} = "
        f"{len(length_scales) * len(vertical_scales)} combinations"
    )

    for l in length_scales:
        for v in vertical_scales:
            logger.info(f"Testing l={l:.2f}, v={v:.2f}...")
            try:
                gp = GaussianProcessRegressor(example.X, example.y, v=v, l=l,
                                              s=example.y_noise_std, m="auto")
                posterior = gp.predict(example.Xt)
            except GPVizError as e:
                logger.warning(f"  → Failed: {e.describe()}")
                continue

            # Only score inside the sampled range, where the data constrains the fit
            x_min, x_max = example.function.x_range
            inside = (example.Xt.ravel() >= x_min) & (example.Xt.ravel() <= x_max)
            rmse = np.sqrt(mean_squared_error(example.yt.ravel()[inside], posterior.mean[inside]))

            results.append({
                'length_scale': l,
                'vertical_scale': v,
                'rmse_in_range': rmse,
                'mean_variance': float(np.mean(posterior.variance))
            })
            logger.info(f"  → RMSE: {rmse:.4f}, mean variance: {results[-1]['mean_variance']:.4f}")

    return pd.DataFrame(results)


def main():
    output_dir = os.path.join(os.path.dirname(__file__), 'outputs')
    os.makedirs(output_dir, exist_ok=True)

    example = Example("exp(cos(x)) sin(x)", sample_method="random", y_noise_std=0.1,
                      num_samples=15, seed=42)
    results_df = hyperparameter_scan(example)

    results_path = os.path.join(output_dir, 'hyperparam_scan.csv')
    results_df.to_csv(results_path, index=False)
    logger.info(f"Results saved to {results_path}")

    plt.figure(figsize=(10, 5))
    for v, group in results_df.groupby('vertical_scale'):
        plt.plot(group['length_scale'], group['rmse_in_range'], 'o-', label=f'v={v:g}')
    plt.xscale('log')
    plt.xlabel('Length scale l', fontsize=12)
    plt.ylabel('RMSE (sampled range)', fontsize=12)
    plt.title('Effect of Length Scale on Posterior Mean', fontsize=14, fontweight='bold')
    plt.legend(fontsize=10)
    plt.grid(True, alpha=0.3)
    plt.tight_layout()

    plot_path = os.path.join(output_dir, 'hyperparam_scan.png')
    plt.savefig(plot_path, dpi=150, bbox_inches='tight')
    logger.info(f"Plot saved to {plot_path}")
    plt.close()

    logger.info("\nHyperparameter sweep completed successfully!")


if __name__ == '__main__':
    main()
