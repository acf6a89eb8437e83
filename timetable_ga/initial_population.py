# timetable_ga/initial_population.py
import random
from typing import List

from .model import Catalog, Chromosome, Gene, Population


def random_gene(course, catalog: Catalog, rng: random.Random) -> Gene:
    # Sin filtrar: la presión evolutiva corrige combinaciones inválidas
    return Gene(
        course=course,
        teacher=rng.choice(catalog.teachers),
        room=rng.choice(catalog.rooms),
        time_slot=rng.choice(catalog.time_slots),
    )


def random_chromosome(catalog: Catalog, rng: random.Random) -> Chromosome:
    genes: List[Gene] = []
    for course in catalog.classes:
        genes.append(random_gene(course, catalog, rng))
    return Chromosome(genes=genes)


def build_initial_population(catalog: Catalog, pop_size: int, rng: random.Random) -> Population:
    return [random_chromosome(catalog, rng) for _ in range(pop_size)]
