"""
Vault Configuration — Key derivation policy and reader limits.

Reads settings from environment variables:
    VAULT_KDF_MEMORY_COST = <KiB, default 65536>
    VAULT_KDF_ITERATIONS = <default 3>
    VAULT_KDF_PARALLELISM = <default 1>
    VAULT_KDF_MAX_MEMORY_COST = <KiB, default 4194304>
    VAULT_KDF_MAX_ITERATIONS = <default 64>
    VAULT_KDF_MAX_PARALLELISM = <default 64>

The first three are the write policy embedded in newly saved vaults. The
``max_*`` limits bound what a reader agrees to derive, so a tampered header
cannot demand an unbounded amount of memory or time.

Security Note:
    Never log key material. Only log cost parameters.
"""
import os
import logging

from pydantic import BaseModel, Field, model_validator

from .exceptions import KdfConfigurationError
from .kdf import (
    DEFAULT_ITERATIONS,
    DEFAULT_MEMORY_COST,
    DEFAULT_PARALLELISM,
    KdfParams,
)

logger = logging.getLogger("navigator.vault")

_U32_MAX = 0xFFFFFFFF

_ENV_FIELDS = {
    "memory_cost": "VAULT_KDF_MEMORY_COST",
    "iterations": "VAULT_KDF_ITERATIONS",
    "parallelism": "VAULT_KDF_PARALLELISM",
    "max_memory_cost": "VAULT_KDF_MAX_MEMORY_COST",
    "max_iterations": "VAULT_KDF_MAX_ITERATIONS",
    "max_parallelism": "VAULT_KDF_MAX_PARALLELISM",
}


class VaultConfig(BaseModel):
    """Validated vault configuration."""

    memory_cost: int = Field(default=DEFAULT_MEMORY_COST, ge=8, le=_U32_MAX)
    iterations: int = Field(default=DEFAULT_ITERATIONS, ge=1, le=_U32_MAX)
    parallelism: int = Field(default=DEFAULT_PARALLELISM, ge=1, le=0xFFFFFF)
    max_memory_cost: int = Field(default=4 * 1024 * 1024, ge=8, le=_U32_MAX)
    max_iterations: int = Field(default=64, ge=1, le=_U32_MAX)
    max_parallelism: int = Field(default=64, ge=1, le=0xFFFFFF)

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def validate_policy_within_limits(self) -> "VaultConfig":
        """Ensure this build can read back what it writes."""
        for name in ("memory_cost", "iterations", "parallelism"):
            if getattr(self, name) > getattr(self, f"max_{name}"):
                raise ValueError(
                    f"{name}={getattr(self, name)} exceeds "
                    f"max_{name}={getattr(self, f'max_{name}')}"
                )
        if self.memory_cost < 8 * self.parallelism:
            raise ValueError(
                f"memory_cost must be at least 8 * parallelism "
                f"({8 * self.parallelism} KiB)"
            )
        return self

    def kdf_params(self) -> KdfParams:
        """Write policy as header parameters."""
        return KdfParams(self.memory_cost, self.iterations, self.parallelism)

    def check_limits(self, params: KdfParams) -> KdfParams:
        """Validate parameters read from a vault against reader limits.

        Raises:
            KdfConfigurationError: Degenerate parameters or costs above limits.
        """
        params.validate()
        for name in ("memory_cost", "iterations", "parallelism"):
            value = getattr(params, name)
            limit = getattr(self, f"max_{name}")
            if value > limit:
                raise KdfConfigurationError(
                    f"vault {name}={value} exceeds the configured limit of {limit}"
                )
        return params

    def with_params(
        self, memory_cost: int, iterations: int, parallelism: int
    ) -> "VaultConfig":
        """Return a copy with a different write policy.

        Limits are raised to fit the new policy when needed.

        Raises:
            KdfConfigurationError: Degenerate parameters.
        """
        params = KdfParams(memory_cost, iterations, parallelism).validate()
        data = self.model_dump()
        data.update(
            memory_cost=params.memory_cost,
            iterations=params.iterations,
            parallelism=params.parallelism,
            max_memory_cost=max(self.max_memory_cost, params.memory_cost),
            max_iterations=max(self.max_iterations, params.iterations),
            max_parallelism=max(self.max_parallelism, params.parallelism),
        )
        return type(self)(**data)

    @classmethod
    def from_env(cls) -> "VaultConfig":
        """Create VaultConfig by loading values from environment.

        Returns:
            Populated VaultConfig instance.
        """
        values = {}
        for name, env in _ENV_FIELDS.items():
            raw = os.environ.get(env)
            if raw is not None:
                values[name] = raw
        config = cls(**values)
        logger.debug(
            "Vault KDF policy: m=%d t=%d p=%d",
            config.memory_cost, config.iterations, config.parallelism,
        )
        return config
