# timetable_ga/model.py
from dataclasses import dataclass, field, replace
from datetime import time
from typing import FrozenSet, Iterator, List, Tuple

from .config import ConfigurationError

Weekday = int  # 0 = lunes ... 6 = domingo, igual que datetime.weekday()

WEEKDAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")


@dataclass(frozen=True)
class Teacher:
    id: str
    name: str
    subjects: FrozenSet[str] = frozenset()
    available: FrozenSet[Weekday] = frozenset()


@dataclass(frozen=True)
class Room:
    id: str
    capacity: int


@dataclass(frozen=True)
class TimeSlot:
    day: Weekday
    start: time
    end: time

    def overlaps(self, other: "TimeSlot") -> bool:
        return self.day == other.day and self.start < other.end and other.start < self.end

    def label(self) -> str:
        return f"{self.start:%H:%M} - {self.end:%H:%M}"


@dataclass(frozen=True)
class CourseClass:
    # Plantilla a programar: sin docente, aula ni horario
    subject: str
    capacity: int = 0


@dataclass
class Gene:
    # Un “gen” = una clase con su docente, aula y franja asignados
    course: CourseClass
    teacher: Teacher
    room: Room
    time_slot: TimeSlot

    @property
    def subject(self) -> str:
        return self.course.subject

    def copy(self) -> "Gene":
        return replace(self)


@dataclass
class Chromosome:
    genes: List[Gene] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.genes)

    def __iter__(self) -> Iterator[Gene]:
        return iter(self.genes)

    def subjects(self) -> Tuple[str, ...]:
        return tuple(g.subject for g in self.genes)

    def copy(self) -> "Chromosome":
        return Chromosome(genes=[g.copy() for g in self.genes])


Population = List[Chromosome]


@dataclass(frozen=True)
class Catalog:
    teachers: Tuple[Teacher, ...]
    rooms: Tuple[Room, ...]
    time_slots: Tuple[TimeSlot, ...]
    classes: Tuple[CourseClass, ...]

    def __post_init__(self):
        # Aceptamos listas, pero guardamos tuplas (catálogo inmutable)
        for name in ("teachers", "rooms", "time_slots", "classes"):
            object.__setattr__(self, name, tuple(getattr(self, name)))

    def validate(self) -> "Catalog":
        for name in ("teachers", "rooms", "time_slots", "classes"):
            if not getattr(self, name):
                raise ConfigurationError(f"El catálogo '{name}' está vacío")
        for slot in self.time_slots:
            if not 0 <= slot.day < len(WEEKDAY_NAMES):
                raise ConfigurationError(f"Día inválido en franja: {slot.day}")
            if slot.start >= slot.end:
                raise ConfigurationError(f"Franja inválida {WEEKDAY_NAMES[slot.day]} {slot.label()}")
        return self
