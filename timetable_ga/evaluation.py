# timetable_ga/evaluation.py
from dataclasses import dataclass, field
from typing import List

from .model import Chromosome, WEEKDAY_NAMES
from .constraints import time_slots_overlap, teacher_available, room_fits, teacher_qualified

DEFAULT_CONFLICT_WEIGHT = 20


@dataclass
class EvaluationResult:
    score: int
    teacher_conflicts: int      # pares ordenados (cada choque cuenta dos veces)
    room_conflicts: int
    unqualified: int
    over_capacity: int
    unavailable: int
    violations: List[str] = field(default_factory=list)


def evaluate(chromosome: Chromosome, conflict_weight: int = DEFAULT_CONFLICT_WEIGHT) -> int:
    """
    Aptitud del horario: 0 si no hay defectos, negativa en otro caso.

    Los choques se recorren en ambos sentidos (i, j) y (j, i), así que cada
    choque real resta dos veces ``conflict_weight``. Cada defecto individual
    (docente no habilitado, aula chica, docente no disponible) resta 1.
    """
    genes = chromosome.genes
    fitness = 0
    for i, g1 in enumerate(genes):
        for j, g2 in enumerate(genes):
            if i == j or not time_slots_overlap(g1.time_slot, g2.time_slot):
                continue
            if g1.teacher.id == g2.teacher.id:
                fitness -= conflict_weight
            if g1.room.id == g2.room.id:
                fitness -= conflict_weight

        if not teacher_qualified(g1.teacher, g1.subject):
            fitness -= 1
        if not room_fits(g1.course, g1.room):
            fitness -= 1
        if not teacher_available(g1.teacher, g1.time_slot):
            fitness -= 1
    return fitness


def evaluate_detailed(
    chromosome: Chromosome,
    conflict_weight: int = DEFAULT_CONFLICT_WEIGHT,
) -> EvaluationResult:
    """Igual que :func:`evaluate`, pero con el desglose de penalidades."""
    genes = chromosome.genes
    tc = rc = uq = oc = ua = 0
    violations: List[str] = []

    for i, g1 in enumerate(genes):
        for j, g2 in enumerate(genes):
            if i == j or not time_slots_overlap(g1.time_slot, g2.time_slot):
                continue
            if g1.teacher.id == g2.teacher.id:
                tc += 1
                if i < j:
                    violations.append(
                        f"Choque docente {g1.teacher.name}: {g1.subject} / {g2.subject} "
                        f"({WEEKDAY_NAMES[g1.time_slot.day]})"
                    )
            if g1.room.id == g2.room.id:
                rc += 1
                if i < j:
                    violations.append(
                        f"Choque aula {g1.room.id}: {g1.subject} / {g2.subject} "
                        f"({WEEKDAY_NAMES[g1.time_slot.day]})"
                    )

        if not teacher_qualified(g1.teacher, g1.subject):
            uq += 1
            violations.append(f"{g1.teacher.name} no dicta {g1.subject}")
        if not room_fits(g1.course, g1.room):
            oc += 1
            violations.append(
                f"Aula {g1.room.id} ({g1.room.capacity}) chica para {g1.subject} ({g1.course.capacity})"
            )
        if not teacher_available(g1.teacher, g1.time_slot):
            ua += 1
            violations.append(f"{g1.teacher.name} no disponible el {WEEKDAY_NAMES[g1.time_slot.day]}")

    score = -conflict_weight * (tc + rc) - (uq + oc + ua)
    return EvaluationResult(
        score=score,
        teacher_conflicts=tc,
        room_conflicts=rc,
        unqualified=uq,
        over_capacity=oc,
        unavailable=ua,
        violations=violations,
    )
