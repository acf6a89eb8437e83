# timetable_ga/report.py
from pathlib import Path
from typing import Dict, List, Optional
import pandas as pd

from .model import Chromosome, WEEKDAY_NAMES
from .evaluation import evaluate_detailed, DEFAULT_CONFLICT_WEIGHT


SCHEDULE_COLUMNS = ["Day", "Class", "Teacher", "Room(Capacity)", "Time Slot"]


def chromosome_to_dataframe(chromosome: Chromosome) -> pd.DataFrame:
    """Tabla del horario ordenada por día y hora de inicio."""
    data = []
    for g in chromosome.genes:
        data.append(
            {
                "Day": WEEKDAY_NAMES[g.time_slot.day],
                "Class": g.subject,
                "Teacher": g.teacher.name,
                "Room(Capacity)": f"{g.room.id}({g.room.capacity})",
                "Time Slot": g.time_slot.label(),
                "_day": g.time_slot.day,
                "_start": g.time_slot.start.hour * 60 + g.time_slot.start.minute,
            }
        )
    if not data:
        return pd.DataFrame(columns=SCHEDULE_COLUMNS)
    df = pd.DataFrame(data)
    # sort estable: a igual día y hora se respeta el orden del cromosoma
    df = df.sort_values(["_day", "_start"], kind="stable").drop(columns=["_day", "_start"])
    return df.reset_index(drop=True)


def conflicts_dataframe(chromosome: Chromosome, conflict_weight: int = DEFAULT_CONFLICT_WEIGHT) -> pd.DataFrame:
    res = evaluate_detailed(chromosome, conflict_weight)
    return pd.DataFrame(
        [
            {"tipo": "choque_docente", "valor": res.teacher_conflicts},
            {"tipo": "choque_aula", "valor": res.room_conflicts},
            {"tipo": "docente_no_habilitado", "valor": res.unqualified},
            {"tipo": "aula_insuficiente", "valor": res.over_capacity},
            {"tipo": "docente_no_disponible", "valor": res.unavailable},
            {"tipo": "fitness", "valor": res.score},
        ]
    )


def schedule_html(chromosome: Chromosome, score: int) -> str:
    table = chromosome_to_dataframe(chromosome).to_html(index=False, border=1)
    return f"{table}\n<p>Fitness: {score}</p>\n"


def export_outputs(
    solution,
    out_dir: Path,
    history: Optional[List[Dict]] = None,
    conflict_weight: int = DEFAULT_CONFLICT_WEIGHT,
) -> Dict[str, Path]:
    """Escribe schedule.csv, schedule.html, conflicts.csv e history.csv."""
    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    paths = {
        "schedule": out_dir / "schedule.csv",
        "html": out_dir / "schedule.html",
        "conflicts": out_dir / "conflicts.csv",
    }
    chromosome_to_dataframe(solution.chromosome).to_csv(paths["schedule"], index=False)
    paths["html"].write_text(schedule_html(solution.chromosome, solution.score), encoding="utf-8")
    conflicts_dataframe(solution.chromosome, conflict_weight).to_csv(paths["conflicts"], index=False)
    if history:
        paths["history"] = out_dir / "history.csv"
        pd.DataFrame(history).to_csv(paths["history"], index=False)
    return paths
