# timetable_ga/data_loader.py
from datetime import datetime, time
from pathlib import Path
from typing import FrozenSet, List
import pandas as pd

from .config import ConfigurationError
from .model import Catalog, CourseClass, Room, Teacher, TimeSlot, WEEKDAY_NAMES

MON, TUE, WED, THU, FRI = range(5)

_WEEKDAY_LOOKUP = {}
for _idx, _name in enumerate(WEEKDAY_NAMES):
    _WEEKDAY_LOOKUP[_name.lower()] = _idx
    _WEEKDAY_LOOKUP[_name[:3].lower()] = _idx

ALL_SUBJECTS = frozenset({
    "History", "Geography", "Foreign Language", "Literature", "English",
    "Mathematics", "Physics", "Chemistry", "Biology", "Computer Science",
    "Physical Education", "Health", "Art", "Music",
})
WEEKDAYS = frozenset({MON, TUE, WED, THU, FRI})


def parse_weekday(value) -> int:
    text = str(value).strip().lower()
    if text.isdigit():
        day = int(text)
        if 0 <= day < len(WEEKDAY_NAMES):
            return day
    elif text in _WEEKDAY_LOOKUP:
        return _WEEKDAY_LOOKUP[text]
    raise ConfigurationError(f"Día no reconocido: {value!r}")


def parse_time(value) -> time:
    try:
        return datetime.strptime(str(value).strip(), "%H:%M").time()
    except ValueError as e:
        raise ConfigurationError(f"Hora inválida {value!r} (se espera HH:MM)") from e


def _split(value) -> List[str]:
    # Columnas con listas separadas por ';'
    if pd.isna(value):
        return []
    return [part.strip() for part in str(value).split(";") if part.strip()]


def _days(value) -> FrozenSet[int]:
    return frozenset(parse_weekday(d) for d in _split(value))


def _read_csv(data_dir: Path, name: str, required: List[str]) -> pd.DataFrame:
    path = data_dir / name
    if not path.exists():
        raise ConfigurationError(f"No existe {path}")
    df = pd.read_csv(path)
    missing = [c for c in required if c not in df.columns]
    if missing:
        raise ConfigurationError(f"{name}: faltan columnas {missing}")
    return df


def load_catalog(data_dir: str) -> Catalog:
    base = Path(data_dir)
    docentes = _read_csv(base, "teachers.csv", ["id", "name", "subjects", "available"])
    aulas = _read_csv(base, "rooms.csv", ["id", "capacity"])
    franjas = _read_csv(base, "timeslots.csv", ["day", "start", "end"])
    clases = _read_csv(base, "classes.csv", ["subject"])

    teachers = [
        Teacher(
            id=str(r["id"]),
            name=str(r["name"]),
            subjects=frozenset(_split(r["subjects"])),
            available=_days(r["available"]),
        )
        for _, r in docentes.iterrows()
    ]
    rooms = [Room(id=str(r["id"]), capacity=int(r["capacity"])) for _, r in aulas.iterrows()]
    time_slots = [
        TimeSlot(day=parse_weekday(r["day"]), start=parse_time(r["start"]), end=parse_time(r["end"]))
        for _, r in franjas.iterrows()
    ]
    if "capacity" not in clases.columns:
        clases["capacity"] = 0
    classes = [
        CourseClass(subject=str(r["subject"]), capacity=int(r["capacity"]) if pd.notna(r["capacity"]) else 0)
        for _, r in clases.iterrows()
    ]
    return Catalog(teachers=teachers, rooms=rooms, time_slots=time_slots, classes=classes)


def sample_catalog() -> Catalog:
    """Catálogo de ejemplo: 11 docentes, 9 aulas, 25 franjas (lun-vie), 13 clases."""
    teachers = [
        Teacher("T1", "Mr. Smith", frozenset({"Mathematics", "Physics"}), frozenset({MON, WED, FRI})),
        Teacher("T2", "Ms. Johnson", frozenset({"History", "English"}), frozenset({TUE, THU})),
        Teacher("T3", "Mr. Williams", frozenset({"English", "Literature"}), WEEKDAYS),
        Teacher("T4", "Ms. Brown", frozenset({"Chemistry", "Biology"}), WEEKDAYS),
        Teacher("T5", "Mr. Green", frozenset({"Physical Education", "Health"}), frozenset({TUE, THU, FRI})),
        Teacher("T6", "Ms. Davis", frozenset({"Art", "Music"}), frozenset({MON, WED, FRI})),
        Teacher("T7", "Mr. Wilson", frozenset({"Computer Science", "Mathematics"}), frozenset({TUE, THU})),
        Teacher("T8", "Ms. Taylor", frozenset({"Foreign Language", "Geography"}), frozenset({MON, WED, FRI})),
        Teacher("T9", "Mr. Anderson", ALL_SUBJECTS, WEEKDAYS),
        Teacher("T10", "Mr. Peters", ALL_SUBJECTS, WEEKDAYS),
        Teacher("T11", "Mr. Meier", ALL_SUBJECTS, WEEKDAYS),
    ]
    rooms = [Room(f"R{n}", 30) for n in range(101, 110)]

    bloques = [((8, 0), (10, 0)), ((10, 30), (11, 30)), ((11, 30), (12, 30)),
               ((13, 30), (14, 30)), ((14, 30), (15, 30))]
    time_slots = [
        TimeSlot(day, time(*start), time(*end))
        for day in (MON, TUE, WED, THU, FRI)
        for start, end in bloques
    ]

    subjects = [
        "Mathematics", "History", "Physics", "English", "Biology", "Chemistry",
        "Computer Science", "Physical Education", "Art", "Music",
        "Foreign Language", "Geography", "Literature",
    ]
    classes = [CourseClass(subject=s, capacity=25) for s in subjects]
    return Catalog(teachers=teachers, rooms=rooms, time_slots=time_slots, classes=classes)
