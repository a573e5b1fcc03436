"""
Package-wide configuration for numerical tolerances and defaults.

Components read the configuration at call time, so ``get_config().update(...)``
takes effect for every subsequent fit, prediction or draw. Explicit keyword
arguments passed to a component always win over the configuration.
"""

import os
import logging

_DEFAULTS = {
    "jitter": 1e-6,
    "max_condition": 1e12,
    "sampling_jitter": 1e-10,
    "max_jitter_retries": 32,
    "variance_tolerance": 1e-9,
    "negative_variance_warning": 1e-6,
    "prior_domain": (-1.0, 1.0),
    "prior_resolution": 100,
    "seed": 1234,
}


class GPVizConfig:
    def __init__(self):
        for key, value in _DEFAULTS.items():
            setattr(self, key, value)
        # logger lives in config
        self.logger = logging.getLogger("gpviz")
        if not self.logger.handlers:
            h = logging.StreamHandler()
            h.setFormatter(logging.Formatter("[%(levelname)s] %(name)s: %(message)s"))
            self.logger.addHandler(h)
        self.log_level = os.environ.get("GPVIZ_LOG_LEVEL", "WARNING").upper()
        self.logger.setLevel(self.log_level)

    def __repr__(self):
        fields = ", ".join(f"{key}={getattr(self, key)!r}" for key in _DEFAULTS)
        return f"<GPVizConfig {fields}, log_level={self.log_level!r}>"

    def update(self, **kwargs):
        for k, v in kwargs.items():
            if k not in _DEFAULTS and k != "log_level":
                raise AttributeError(f"Unknown configuration key: {k}")
            setattr(self, k, v)
            if k == "log_level":
                self.logger.setLevel(v)
        return self

    def reset(self):
        for key, value in _DEFAULTS.items():
            setattr(self, key, value)
        return self


_config = GPVizConfig()


def get_config():
    return _config


def reset_config():
    """Restore every tolerance and default to its initial value."""
    return _config.reset()


def get_logger():
    return _config.logger


def set_log_level(level):
    _config.update(log_level=level)
