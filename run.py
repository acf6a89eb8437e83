import argparse
import logging
import time
from pathlib import Path
from typing import List, Optional

from timetable_ga.config import GAConfig, load_config
from timetable_ga.data_loader import load_catalog, sample_catalog
from timetable_ga.model import Catalog
from timetable_ga.ga import GeneticSolver
from timetable_ga.evaluation import evaluate_detailed
from timetable_ga.report import chromosome_to_dataframe, export_outputs


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Ejecución end-to-end del AG de horarios")
    parser.add_argument("--config", default="config.yaml", help="Ruta al archivo de configuración")
    parser.add_argument("--data_dir", default=None, help="Directorio con los CSV de entrada (por defecto, catálogo de ejemplo)")
    parser.add_argument("--out_dir", default="outputs", help="Directorio de salida")
    parser.add_argument("--seed", type=int, default=None, help="Semilla (reemplaza la del config)")
    parser.add_argument("--generations", type=int, default=None)
    parser.add_argument("--population", type=int, default=None)
    parser.add_argument("--workers", type=int, default=None)
    parser.add_argument("-v", "--verbose", action="store_true", help="Log a nivel DEBUG")
    return parser


def apply_overrides(cfg: GAConfig, args: argparse.Namespace) -> GAConfig:
    if args.seed is not None:
        cfg.seed = args.seed
    if args.generations is not None:
        cfg.generations = args.generations
    if args.population is not None:
        cfg.population_size = args.population
    if args.workers is not None:
        cfg.workers = args.workers
    return cfg


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s - %(message)s",
    )

    cfg = apply_overrides(load_config(args.config), args)

    print("Cargando datos...")
    catalog: Catalog = load_catalog(args.data_dir) if args.data_dir else sample_catalog()
    print(
        f"Docentes: {len(catalog.teachers)} | Aulas: {len(catalog.rooms)} | "
        f"Franjas: {len(catalog.time_slots)} | Clases: {len(catalog.classes)}"
    )

    solver = GeneticSolver(catalog, cfg)
    print(f"Generaciones: {cfg.generations} | Población: {cfg.population_size}")
    start = time.perf_counter()
    best = solver.evolve()
    elapsed = time.perf_counter() - start

    eval_res = evaluate_detailed(best.chromosome, cfg.conflict_weight)

    print("\n--- MEJOR SOLUCIÓN ---")
    print(f"Fitness: {best.score} | Generación: {best.generation} | Tiempo: {elapsed:.2f}s")
    print(
        f"choques docente={eval_res.teacher_conflicts} choques aula={eval_res.room_conflicts} "
        f"no habilitado={eval_res.unqualified} capacidad={eval_res.over_capacity} "
        f"no disponible={eval_res.unavailable}"
    )
    print(chromosome_to_dataframe(best.chromosome).to_string(index=False))

    paths = export_outputs(best, Path(args.out_dir), solver.history, cfg.conflict_weight)
    print(f"Se guardaron resultados en {', '.join(str(p) for p in paths.values())}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
