"""
Configuración del algoritmo genético.

Incluye un cargador desde YAML para dejar los parámetros reproducibles y
configurables, más la validación previa a cualquier ejecución.
"""
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Dict, Optional, Any
import logging

import yaml


logger = logging.getLogger(__name__)


class ConfigurationError(ValueError):
    """Parámetros o catálogos inválidos: se rechazan antes de empezar."""


_INT_FIELDS = ("population_size", "generations", "tournament_size", "conflict_weight", "workers", "log_every")


@dataclass
class GAConfig:
    # Algoritmo genético
    population_size: int = 100
    generations: int = 100
    tournament_size: int = 3
    mutation_rate: float = 0.05
    seed: Optional[int] = 42

    # Peso de cada choque docente/aula (por par ordenado)
    conflict_weight: int = 20

    # Ejecución
    workers: int = 1
    log_every: int = 5

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GAConfig":
        merged = asdict(cls())
        for k, v in data.items():
            if k in merged:
                merged[k] = v
        return cls(**merged)

    def validate(self) -> "GAConfig":
        for name in _INT_FIELDS:
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ConfigurationError(f"{name} debe ser entero (recibido {value!r})")
        if isinstance(self.mutation_rate, bool) or not isinstance(self.mutation_rate, (int, float)):
            raise ConfigurationError(f"mutation_rate debe ser numérico (recibido {self.mutation_rate!r})")
        if self.seed is not None and (isinstance(self.seed, bool) or not isinstance(self.seed, int)):
            raise ConfigurationError(f"seed debe ser entero o vacío (recibido {self.seed!r})")
        if self.population_size < 2:
            raise ConfigurationError(f"population_size debe ser >= 2 (recibido {self.population_size})")
        if self.tournament_size < 1:
            raise ConfigurationError(f"tournament_size debe ser >= 1 (recibido {self.tournament_size})")
        if not 0.0 <= self.mutation_rate <= 1.0:
            raise ConfigurationError(f"mutation_rate debe estar en [0, 1] (recibido {self.mutation_rate})")
        if self.generations < 0:
            raise ConfigurationError(f"generations no puede ser negativo (recibido {self.generations})")
        if self.conflict_weight < 0:
            raise ConfigurationError(f"conflict_weight no puede ser negativo (recibido {self.conflict_weight})")
        if self.workers < 1:
            raise ConfigurationError(f"workers debe ser >= 1 (recibido {self.workers})")
        if self.population_size % 2:
            # Con tamaño impar el último paso solo aporta el primer hijo.
            logger.warning("population_size impar (%d): se recomienda un tamaño par", self.population_size)
        return self


def _load_yaml(path: Path) -> Any:
    if not path.exists():
        return {}
    text = path.read_text(encoding="utf-8")
    return yaml.safe_load(text) or {}


def load_config(path: str = "config.yaml") -> GAConfig:
    cfg_path = Path(path)
    data = _load_yaml(cfg_path)
    if not isinstance(data, dict):
        raise ConfigurationError("config.yaml debe contener un objeto mapeo")
    return GAConfig.from_dict(data)
