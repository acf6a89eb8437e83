import random
from typing import Sequence, Tuple

from .model import Chromosome, Population, Room, Teacher, TimeSlot
from .evaluation import evaluate, DEFAULT_CONFLICT_WEIGHT


def tournament_selection(
    population: Population,
    tournament_size: int,
    rng: random.Random,
    conflict_weight: int = DEFAULT_CONFLICT_WEIGHT,
) -> Chromosome:
    """Torneo con reemplazo: gana el de mayor aptitud, el primero en caso de empate."""
    if tournament_size < 1:
        raise ValueError("tournament_size debe ser >= 1")
    best = None
    best_fitness = 0
    for _ in range(tournament_size):
        candidate = population[rng.randrange(len(population))]
        fitness = evaluate(candidate, conflict_weight)
        if best is None or fitness > best_fitness:
            best = candidate
            best_fitness = fitness
    return best


def crossover(parent_a: Chromosome, parent_b: Chromosome, cut: int) -> Chromosome:
    """Cruce en un punto: genes de A antes de ``cut`` y de B desde ``cut``."""
    if len(parent_a) != len(parent_b):
        raise ValueError("Los padres deben tener la misma cantidad de genes")
    child_genes = [g.copy() for g in parent_a.genes[:cut]]
    child_genes.extend(g.copy() for g in parent_b.genes[cut:])
    return Chromosome(genes=child_genes)


def crossover_pair(
    parent_a: Chromosome,
    parent_b: Chromosome,
    rng: random.Random,
) -> Tuple[Chromosome, Chromosome]:
    # Un solo punto de corte para los dos hijos complementarios
    cut = rng.randrange(len(parent_a.genes)) if parent_a.genes else 0
    return crossover(parent_a, parent_b, cut), crossover(parent_b, parent_a, cut)


def mutate(
    chromosome: Chromosome,
    teachers: Sequence[Teacher],
    rooms: Sequence[Room],
    time_slots: Sequence[TimeSlot],
    mutation_rate: float,
    rng: random.Random,
) -> Chromosome:
    """Mutación por gen: reemplaza docente, aula o franja (uno de los tres)."""
    for g in chromosome.genes:
        if rng.random() < mutation_rate:
            choice = rng.randrange(3)
            if choice == 0:
                g.teacher = rng.choice(teachers)
            elif choice == 1:
                g.room = rng.choice(rooms)
            else:
                g.time_slot = rng.choice(time_slots)
    return chromosome
