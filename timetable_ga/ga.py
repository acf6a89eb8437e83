import logging
import random
import threading
from concurrent.futures import ProcessPoolExecutor
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional

import numpy as np

from .config import GAConfig
from .model import Catalog, Chromosome, Population
from .evaluation import evaluate
from .initial_population import build_initial_population
from .operators import tournament_selection, crossover_pair, mutate


logger = logging.getLogger(__name__)


def _score_chunk(chromosomes: List[Chromosome], conflict_weight: int) -> List[int]:
    # Se ejecuta en un proceso del pool: solo calcula, no toca el registro
    return [evaluate(c, conflict_weight) for c in chromosomes]


class SolverState(Enum):
    SEEDED = "seeded"
    EVOLVING = "evolving"
    CONCLUDED = "concluded"


@dataclass(frozen=True)
class BestSolution:
    score: int
    chromosome: Chromosome
    generation: int


class BestRecord:
    """
    Mejor horario de toda la ejecución.

    El puntaje y el cromosoma viajan juntos en un ``BestSolution`` inmutable
    que solo se reemplaza dentro del candado, y solo si mejora estrictamente.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._best: Optional[BestSolution] = None

    def offer(self, chromosome: Chromosome, score: int, generation: int) -> bool:
        with self._lock:
            if self._best is not None and score <= self._best.score:
                return False
            self._best = BestSolution(score=score, chromosome=chromosome.copy(), generation=generation)
            return True

    @property
    def best(self) -> Optional[BestSolution]:
        return self._best


class GeneticSolver:
    def __init__(self, catalog: Catalog, cfg: GAConfig, rng: Optional[random.Random] = None):
        self.catalog = catalog
        self.cfg = cfg
        self.rng = rng if rng is not None else random.Random(cfg.seed)
        self.record = BestRecord()
        self.population: Population = []
        self.history: List[Dict] = []
        self.state: Optional[SolverState] = None
        self.generations_run = 0

    def seed(self) -> Population:
        # Falla antes de producir nada si la configuración es inválida
        self.cfg.validate()
        self.catalog.validate()
        self.population = build_initial_population(self.catalog, self.cfg.population_size, self.rng)
        self.state = SolverState.SEEDED
        return self.population

    def next_generation(self, population: Population) -> Population:
        cfg = self.cfg
        cat = self.catalog
        new_pop: Population = []
        for _ in range(0, cfg.population_size, 2):
            p1 = tournament_selection(population, cfg.tournament_size, self.rng, cfg.conflict_weight)
            p2 = tournament_selection(population, cfg.tournament_size, self.rng, cfg.conflict_weight)
            child1, child2 = crossover_pair(p1, p2, self.rng)
            mutate(child1, cat.teachers, cat.rooms, cat.time_slots, cfg.mutation_rate, self.rng)
            mutate(child2, cat.teachers, cat.rooms, cat.time_slots, cfg.mutation_rate, self.rng)
            new_pop.append(child1)
            # Con tamaño impar el último paso descarta el segundo hijo
            if len(new_pop) < cfg.population_size:
                new_pop.append(child2)
        return new_pop

    def _scan(self, population: Population, generation: int) -> List[int]:
        """Evalúa en orden y se detiene en el primer horario perfecto."""
        scores: List[int] = []
        best_in_generation = None
        for chromo in population:
            fitness = evaluate(chromo, self.cfg.conflict_weight)
            scores.append(fitness)
            if best_in_generation is None or fitness > best_in_generation:
                best_in_generation = fitness
                if self.record.offer(chromo, fitness, generation):
                    logger.debug("Gen %d: nuevo mejor fitness=%d", generation, fitness)
                if fitness == 0:
                    break
        return scores

    def _scan_parallel(self, population: Population, generation: int, executor: ProcessPoolExecutor) -> List[int]:
        """
        Igual que :meth:`_scan`, pero los puntajes se calculan por bloques en
        otros procesos. El registro del mejor se actualiza solo aquí, en el
        proceso del driver y en el orden de la población.
        """
        weight = self.cfg.conflict_weight
        size = max(1, len(population) // (self.cfg.workers * 4))
        chunks = [population[i:i + size] for i in range(0, len(population), size)]
        futures = [executor.submit(_score_chunk, chunk, weight) for chunk in chunks]
        scores: List[int] = []
        best_in_generation = None
        try:
            for chunk, future in zip(chunks, futures):
                for chromo, fitness in zip(chunk, future.result()):
                    scores.append(fitness)
                    if best_in_generation is None or fitness > best_in_generation:
                        best_in_generation = fitness
                        if self.record.offer(chromo, fitness, generation):
                            logger.debug("Gen %d: nuevo mejor fitness=%d", generation, fitness)
                        if fitness == 0:
                            return scores
        finally:
            # Bloques pendientes tras un horario perfecto no se evalúan
            for future in futures:
                future.cancel()
        return scores

    def _evaluate_population(
        self,
        population: Population,
        generation: int,
        executor: Optional[ProcessPoolExecutor],
    ) -> List[int]:
        if executor is None:
            return self._scan(population, generation)
        return self._scan_parallel(population, generation, executor)

    def _record_history(self, generation: int, scores: List[int]) -> Dict:
        best = self.record.best
        entry = {
            "generation": generation,
            "best_score": int(max(scores)),
            "best_ever": best.score,
            "mean_score": float(np.mean(scores)),
            "evaluated": len(scores),
        }
        self.history.append(entry)
        every = self.cfg.log_every
        if every and generation % every == 0:
            logger.info(
                "Gen %d: Mejor=%d Mejor global=%d Avg=%.2f",
                generation, entry["best_score"], entry["best_ever"], entry["mean_score"],
            )
        return entry

    def evolve(
        self,
        should_stop: Optional[Callable[[], bool]] = None,
        on_generation: Optional[Callable[[Dict], None]] = None,
    ) -> BestSolution:
        """
        Ejecuta el AG hasta agotar ``cfg.generations`` o encontrar fitness 0.

        ``should_stop`` se consulta entre generaciones (nunca a mitad de una)
        para cancelar desde afuera. ``on_generation`` recibe cada entrada del
        historial. Devuelve el mejor horario visto en toda la ejecución.

        Con ``cfg.workers > 1`` la aptitud se calcula en un
        ``ProcessPoolExecutor``; el resultado es el mismo que con un solo
        proceso para la misma semilla.
        """
        if self.state is None:
            self.seed()
        elif self.state is not SolverState.SEEDED:
            raise RuntimeError("El solver ya fue ejecutado; cree uno nuevo")

        cfg = self.cfg
        executor = ProcessPoolExecutor(max_workers=cfg.workers) if cfg.workers > 1 else None
        try:
            scores = self._evaluate_population(self.population, 0, executor)
            entry = self._record_history(0, scores)
            if on_generation is not None:
                on_generation(entry)
            self.state = SolverState.EVOLVING

            best_in_generation = entry["best_score"]
            gen = 0
            while best_in_generation != 0 and gen < cfg.generations:
                if should_stop is not None and should_stop():
                    logger.info("Ejecución cancelada tras %d generaciones", gen)
                    break
                gen += 1
                self.population = self.next_generation(self.population)
                scores = self._evaluate_population(self.population, gen, executor)
                entry = self._record_history(gen, scores)
                if on_generation is not None:
                    on_generation(entry)
                best_in_generation = entry["best_score"]
                self.generations_run = gen
        finally:
            if executor is not None:
                executor.shutdown()

        self.state = SolverState.CONCLUDED
        best = self.record.best
        logger.info(
            "Fin: %d generaciones, mejor fitness=%d (gen %d)",
            self.generations_run, best.score, best.generation,
        )
        return best
