"""
Base configuration classes for rnnbridge.
Provides engine-wide and per-network configuration with validation and defaults.
"""

import logging
from dataclasses import dataclass, field
from typing import Literal, Optional, List, Union
from pathlib import Path

import torch
import yaml

logger = logging.getLogger(__name__)


# Type definitions for better type checking
Precision = Literal["single", "double"]

_PRECISION_DTYPES = {
    "single": torch.float32,
    "double": torch.float64,
}


@dataclass
class BaseConfig:
    """Base configuration class with common functionality."""

    def validate(self) -> None:
        """Validate configuration parameters."""
        pass

    def to_dict(self) -> dict:
        """Convert configuration to dictionary."""
        return {k: v for k, v in self.__dict__.items() if not k.startswith('_')}

    @classmethod
    def from_dict(cls, config_dict: dict) -> 'BaseConfig':
        """Create configuration from dictionary."""
        return cls(**config_dict)

    @classmethod
    def from_yaml(cls, yaml_path: Union[str, Path]) -> 'BaseConfig':
        """Load configuration from YAML file."""
        with open(yaml_path, 'r') as f:
            config_dict = yaml.safe_load(f)
        return cls.from_dict(config_dict or {})

    def to_yaml(self, yaml_path: Union[str, Path]) -> None:
        """Save configuration to YAML file."""
        with open(yaml_path, 'w') as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False, indent=2)


@dataclass
class EngineConfig(BaseConfig):
    """
    Process-wide settings of the tensor engine.

    The precision is fixed for a network at construction time; changing it
    afterwards only affects networks built later.
    """

    precision: Precision = "single"

    # Standard deviation of the random-normal weight fill (None -> 1/sqrt(fan_in))
    init_std: Optional[float] = None

    # Seed for reproducible weight initialization (None -> torch global RNG)
    seed: Optional[int] = None

    def validate(self) -> None:
        """Validate engine configuration."""
        super().validate()

        if self.precision not in _PRECISION_DTYPES:
            raise ValueError(f"precision must be one of {sorted(_PRECISION_DTYPES)}")
        if self.init_std is not None and self.init_std <= 0:
            raise ValueError("init_std must be positive")
        if self.seed is not None and self.seed < 0:
            raise ValueError("seed must be non-negative")

    @property
    def dtype(self) -> torch.dtype:
        """Torch dtype matching the configured precision."""
        return _PRECISION_DTYPES[self.precision]


@dataclass
class NetworkConfig(BaseConfig):
    """Shape of a single recurrent network plus its default learning rate."""

    time_depth: int = 1
    layer_sizes: List[int] = field(default_factory=lambda: [1, 1])
    learning_rate: float = 0.1

    @classmethod
    def from_dict(cls, config_dict: dict) -> 'NetworkConfig':
        """Create NetworkConfig from dictionary, normalizing the layer sizes."""
        cfg = dict(config_dict or {})
        if 'layer_sizes' in cfg:
            cfg['layer_sizes'] = [int(s) for s in cfg['layer_sizes']]
        return cls(**cfg)

    def validate(self) -> None:
        """Validate network configuration."""
        super().validate()

        if self.time_depth <= 0:
            raise ValueError("time_depth must be positive")
        if len(self.layer_sizes) < 2:
            raise ValueError("layer_sizes must contain at least 2 elements")
        if any(size <= 0 for size in self.layer_sizes):
            raise ValueError("layer_sizes must be positive")
        if self.learning_rate <= 0:
            raise ValueError("learning_rate must be positive")


_engine_config = EngineConfig()


def get_engine_config() -> EngineConfig:
    """Return the engine configuration currently in effect."""
    return _engine_config


def set_engine_config(config: EngineConfig) -> None:
    """Validate and install a new process-wide engine configuration."""
    global _engine_config
    config.validate()
    _engine_config = config
    logger.info(f"Engine configured: precision={config.precision}, "
                f"init_std={config.init_std}, seed={config.seed}")


def real_dtype() -> torch.dtype:
    """Torch dtype used for tensors of newly constructed networks."""
    return _engine_config.dtype
