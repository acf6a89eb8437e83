import random
import threading
import unittest
from datetime import time

import numpy as np

from timetable_ga.config import GAConfig, ConfigurationError
from timetable_ga.model import Catalog, Chromosome, CourseClass, Gene, Room, Teacher, TimeSlot
from timetable_ga.evaluation import evaluate, evaluate_detailed
from timetable_ga.initial_population import random_chromosome, build_initial_population
from timetable_ga.operators import tournament_selection, crossover, crossover_pair, mutate
from timetable_ga.ga import BestRecord, GeneticSolver, SolverState
from timetable_ga.data_loader import sample_catalog

WEEK = frozenset(range(5))
MON, TUE = 0, 1


def slot(day, start, end):
    return TimeSlot(day, time(*start), time(*end))


MATH = CourseClass("Math", 25)
ART = CourseClass("Art", 25)
ANA = Teacher("T1", "Ana", frozenset({"Math", "Art"}), WEEK)
LUIS = Teacher("T2", "Luis", frozenset({"Math", "Art"}), WEEK)
R1 = Room("R1", 30)
R2 = Room("R2", 30)
MON_8 = slot(MON, (8, 0), (10, 0))
MON_9 = slot(MON, (9, 0), (11, 0))
MON_10 = slot(MON, (10, 0), (11, 0))
TUE_8 = slot(TUE, (8, 0), (10, 0))


def chromo(*genes):
    return Chromosome(genes=[Gene(*g) for g in genes])


def bindings(c):
    return [(g.teacher, g.room, g.time_slot) for g in c]


def single_class_catalog():
    return Catalog(
        teachers=[Teacher("T1", "Ana", frozenset({"Math"}), WEEK)],
        rooms=[Room("R1", 30)],
        time_slots=[MON_8],
        classes=[CourseClass("Math", 25)],
    )


class EvaluationTests(unittest.TestCase):
    def test_valid_timetable_scores_zero(self):
        c = chromo((MATH, ANA, R1, MON_8), (ART, ANA, R1, TUE_8), (ART, LUIS, R2, MON_8))
        self.assertEqual(evaluate(c), 0)

    def test_teacher_conflict_counted_in_both_directions(self):
        c = chromo((MATH, ANA, R1, MON_8), (ART, ANA, R2, MON_9))
        self.assertEqual(evaluate(c, conflict_weight=7), -14)

    def test_room_conflict(self):
        c = chromo((MATH, ANA, R1, MON_8), (ART, LUIS, R1, MON_9))
        self.assertEqual(evaluate(c, conflict_weight=5), -10)

    def test_teacher_and_room_conflict_add_up(self):
        c = chromo((MATH, ANA, R1, MON_8), (ART, ANA, R1, MON_8))
        self.assertEqual(evaluate(c, conflict_weight=1), -4)

    def test_back_to_back_slots_do_not_overlap(self):
        c = chromo((MATH, ANA, R1, MON_8), (ART, ANA, R1, MON_10))
        self.assertEqual(evaluate(c), 0)

    def test_per_gene_defects_cost_one_point_each(self):
        part_time = Teacher("T3", "Eva", frozenset({"Music"}), frozenset({TUE}))
        small = Room("R9", 10)
        c = chromo((MATH, part_time, small, MON_8))
        self.assertEqual(evaluate(c), -3)
        res = evaluate_detailed(c)
        self.assertEqual((res.unqualified, res.over_capacity, res.unavailable), (1, 1, 1))
        self.assertEqual(len(res.violations), 3)

    def test_evaluate_is_deterministic(self):
        rng = random.Random(3)
        c = random_chromosome(sample_catalog(), rng)
        self.assertEqual(evaluate(c), evaluate(c))

    def test_detailed_score_matches_evaluate(self):
        rng = random.Random(11)
        cat = sample_catalog()
        for _ in range(20):
            c = random_chromosome(cat, rng)
            for w in (1, 20):
                self.assertEqual(evaluate_detailed(c, w).score, evaluate(c, w))


class InitializationTests(unittest.TestCase):
    def test_one_gene_per_class_in_catalog_order(self):
        cat = sample_catalog()
        pop = build_initial_population(cat, 5, random.Random(1))
        self.assertEqual(len(pop), 5)
        for c in pop:
            self.assertEqual(c.subjects(), tuple(k.subject for k in cat.classes))
            for g in c:
                self.assertIn(g.teacher, cat.teachers)
                self.assertIn(g.room, cat.rooms)
                self.assertIn(g.time_slot, cat.time_slots)


class OperatorTests(unittest.TestCase):
    def setUp(self):
        self.a = chromo((MATH, ANA, R1, MON_8), (ART, ANA, R1, MON_8), (MATH, ANA, R1, MON_8))
        self.b = chromo((MATH, LUIS, R2, TUE_8), (ART, LUIS, R2, TUE_8), (MATH, LUIS, R2, TUE_8))

    def test_crossover_takes_prefix_and_suffix(self):
        child = crossover(self.a, self.b, 2)
        self.assertEqual(len(child), len(self.a))
        self.assertEqual([g.teacher for g in child], [ANA, ANA, LUIS])
        self.assertEqual(child.subjects(), self.a.subjects())

    def test_crossover_does_not_alias_parent_genes(self):
        child = crossover(self.a, self.b, 1)
        for g in child:
            self.assertNotIn(id(g), {id(x) for x in self.a.genes + self.b.genes})
        mutate(child, [Teacher("T9", "Otro", frozenset(), WEEK)], [Room("R9", 5)], [TUE_8], 1.0, random.Random(0))
        self.assertTrue(all(g.teacher is ANA and g.room is R1 for g in self.a))
        self.assertTrue(all(g.teacher is LUIS and g.room is R2 for g in self.b))

    def test_crossover_pair_reuses_cut(self):
        for seed in range(10):
            c1, c2 = crossover_pair(self.a, self.b, random.Random(seed))
            self.assertEqual(len(c1), len(c2))
            for i in range(len(c1)):
                self.assertEqual(c1.genes[i].teacher is ANA, c2.genes[i].teacher is LUIS)

    def test_crossover_rejects_unequal_parents(self):
        short = chromo((MATH, ANA, R1, MON_8))
        with self.assertRaises(ValueError):
            crossover(self.a, short, 0)

    def test_mutation_keeps_length_and_subjects(self):
        cat = sample_catalog()
        c = random_chromosome(cat, random.Random(5))
        subjects = c.subjects()
        mutate(c, cat.teachers, cat.rooms, cat.time_slots, 1.0, random.Random(6))
        self.assertEqual(len(c), len(cat.classes))
        self.assertEqual(c.subjects(), subjects)

    def test_mutation_replaces_exactly_one_binding(self):
        others = ([Teacher("TX", "X", frozenset(), WEEK)], [Room("RX", 1)], [slot(4, (7, 0), (8, 0))])
        mutate(self.a, *others, 1.0, random.Random(2))
        for g in self.a:
            changed = (g.teacher is not ANA) + (g.room is not R1) + (g.time_slot is not MON_8)
            self.assertEqual(changed, 1)

    def test_zero_rate_never_changes_bindings(self):
        before = [(g.teacher, g.room, g.time_slot) for g in self.a]
        cat = sample_catalog()
        mutate(self.a, cat.teachers, cat.rooms, cat.time_slots, 0.0, random.Random(4))
        after = [(g.teacher, g.room, g.time_slot) for g in self.a]
        for (t0, r0, s0), (t1, r1, s1) in zip(before, after):
            self.assertIs(t0, t1)
            self.assertIs(r0, r1)
            self.assertIs(s0, s1)

    def test_tournament_of_one_is_uniform(self):
        pop = [self.a, self.b, self.a.copy(), self.b.copy()]
        rng = random.Random(123)
        picks = []
        for _ in range(4000):
            chosen = tournament_selection(pop, 1, rng)
            picks.append(next(i for i, c in enumerate(pop) if c is chosen))
        counts = np.bincount(picks, minlength=4)
        for n in counts:
            self.assertTrue(850 < n < 1150, counts)

    def test_tournament_prefers_fitter(self):
        good = chromo((MATH, ANA, R1, MON_8), (ART, LUIS, R2, TUE_8))
        bad = chromo((MATH, ANA, R1, MON_8), (ART, ANA, R1, MON_8))
        pop = [bad, bad.copy(), good, bad.copy()]
        self.assertIs(tournament_selection(pop, 50, random.Random(8)), good)

    def test_tournament_tie_keeps_first_seen(self):
        pop = [self.a, self.a.copy()]
        first = random.Random(77).randrange(2)
        self.assertIs(tournament_selection(pop, 5, random.Random(77)), pop[first])

    def test_tournament_size_must_be_positive(self):
        with self.assertRaises(ValueError):
            tournament_selection([self.a], 0, random.Random(0))


class BestRecordTests(unittest.TestCase):
    def test_only_strict_improvements_commit(self):
        rec = BestRecord()
        a = chromo((MATH, ANA, R1, MON_8))
        self.assertTrue(rec.offer(a, -10, 1))
        self.assertFalse(rec.offer(a, -10, 2))
        self.assertFalse(rec.offer(a, -12, 3))
        self.assertTrue(rec.offer(a, -3, 4))
        self.assertEqual((rec.best.score, rec.best.generation), (-3, 4))

    def test_snapshot_is_independent_copy(self):
        rec = BestRecord()
        a = chromo((MATH, ANA, R1, MON_8))
        rec.offer(a, -1, 0)
        a.genes[0].teacher = LUIS
        self.assertIs(rec.best.chromosome.genes[0].teacher, ANA)

    def test_concurrent_offers_keep_maximum(self):
        rec = BestRecord()
        a = chromo((MATH, ANA, R1, MON_8))
        scores = list(range(-200, 1))
        random.Random(9).shuffle(scores)

        def worker(chunk):
            for s in chunk:
                rec.offer(a, s, 0)

        threads = [threading.Thread(target=worker, args=(scores[i::4],)) for i in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        self.assertEqual(rec.best.score, 0)


def tiny_cfg(**kw):
    base = dict(population_size=10, generations=20, tournament_size=2, mutation_rate=0.1, seed=1, log_every=0)
    base.update(kw)
    return GAConfig(**base)


class SolverTests(unittest.TestCase):
    def test_single_valid_assignment_found_in_seed_generation(self):
        solver = GeneticSolver(single_class_catalog(), tiny_cfg())
        best = solver.evolve()
        self.assertEqual(best.score, 0)
        self.assertEqual(best.generation, 0)
        self.assertEqual(solver.generations_run, 0)
        self.assertIs(solver.state, SolverState.CONCLUDED)
        # el escaneo se corta en el primer horario perfecto
        self.assertEqual(len(solver.history), 1)
        self.assertEqual(solver.history[0]["evaluated"], 1)

    def test_parallel_scan_stops_at_first_perfect_timetable(self):
        cfg = tiny_cfg(workers=4, population_size=1000)
        solver = GeneticSolver(single_class_catalog(), cfg)
        best = solver.evolve()
        self.assertEqual(best.score, 0)
        self.assertEqual(solver.history[0]["evaluated"], 1)
        self.assertLess(solver.history[0]["evaluated"], cfg.population_size)

    def test_odd_population_keeps_first_child_of_last_step(self):
        cat = sample_catalog()
        distinct = 0
        for seed in range(10):
            cfg = tiny_cfg(population_size=5, tournament_size=1, mutation_rate=0.0, seed=seed)
            solver = GeneticSolver(cat, cfg)
            pop = solver.seed()
            replay = random.Random()
            replay.setstate(solver.rng.getstate())
            nxt = solver.next_generation(pop)

            for _ in range(0, cfg.population_size, 2):
                p1 = tournament_selection(pop, cfg.tournament_size, replay, cfg.conflict_weight)
                p2 = tournament_selection(pop, cfg.tournament_size, replay, cfg.conflict_weight)
                child1, child2 = crossover_pair(p1, p2, replay)
                mutate(child1, cat.teachers, cat.rooms, cat.time_slots, 0.0, replay)
                mutate(child2, cat.teachers, cat.rooms, cat.time_slots, 0.0, replay)

            self.assertEqual(len(nxt), 5)
            self.assertEqual(bindings(nxt[-1]), bindings(child1))
            if bindings(child1) != bindings(child2):
                self.assertNotEqual(bindings(nxt[-1]), bindings(child2))
                distinct += 1
        self.assertGreater(distinct, 0)

    def test_unavoidable_teacher_conflict_never_reports_zero(self):
        cat = Catalog(
            teachers=[ANA],
            rooms=[R1, R2],
            time_slots=[MON_8],
            classes=[MATH, ART],
        )
        cfg = tiny_cfg(conflict_weight=3)
        solver = GeneticSolver(cat, cfg)
        best = solver.evolve()
        self.assertLessEqual(best.score, -cfg.conflict_weight)
        self.assertEqual(solver.generations_run, cfg.generations)
        self.assertEqual(best.score, evaluate(best.chromosome, cfg.conflict_weight))

    def test_generation_size_is_constant_even_and_odd(self):
        for size in (5, 6):
            solver = GeneticSolver(sample_catalog(), tiny_cfg(population_size=size))
            pop = solver.seed()
            self.assertEqual(len(solver.next_generation(pop)), size)
            solver.evolve()
            self.assertEqual(len(solver.population), size)

    def test_zero_mutation_only_recombines_parent_genes(self):
        cat = sample_catalog()
        solver = GeneticSolver(cat, tiny_cfg(population_size=20, mutation_rate=0.0))
        pop = solver.seed()
        nxt = solver.next_generation(pop)
        for c in nxt:
            for i, g in enumerate(c):
                parents = {(p.genes[i].teacher, p.genes[i].room, p.genes[i].time_slot) for p in pop}
                self.assertIn((g.teacher, g.room, g.time_slot), parents)

    def test_history_best_ever_is_monotonic(self):
        solver = GeneticSolver(sample_catalog(), tiny_cfg())
        best = solver.evolve()
        best_ever = [h["best_ever"] for h in solver.history]
        self.assertEqual(best_ever, sorted(best_ever))
        self.assertEqual(best_ever[-1], best.score)
        self.assertEqual(len(solver.history), solver.generations_run + 1)

    def test_same_seed_same_run(self):
        h1 = GeneticSolver(sample_catalog(), tiny_cfg(seed=7))
        h2 = GeneticSolver(sample_catalog(), tiny_cfg(seed=7))
        h1.evolve()
        h2.evolve()
        self.assertEqual(h1.history, h2.history)

    def test_parallel_evaluation(self):
        cfg = tiny_cfg(workers=4, population_size=16)
        solver = GeneticSolver(sample_catalog(), cfg)
        best = solver.evolve()
        self.assertLessEqual(best.score, 0)
        self.assertEqual(best.score, evaluate(best.chromosome, cfg.conflict_weight))
        self.assertEqual(best.score, max(h["best_ever"] for h in solver.history))

    def test_parallel_run_matches_single_process_run(self):
        seq = GeneticSolver(sample_catalog(), tiny_cfg(seed=3, population_size=16))
        par = GeneticSolver(sample_catalog(), tiny_cfg(seed=3, population_size=16, workers=3))
        best_seq = seq.evolve()
        best_par = par.evolve()
        self.assertEqual(seq.history, par.history)
        self.assertEqual(best_seq.score, best_par.score)
        self.assertEqual(bindings(best_seq.chromosome), bindings(best_par.chromosome))

    def test_cancellation_between_generations(self):
        solver = GeneticSolver(sample_catalog(), tiny_cfg())
        best = solver.evolve(should_stop=lambda: True)
        self.assertEqual(solver.generations_run, 0)
        self.assertEqual(best.generation, 0)
        self.assertIs(solver.state, SolverState.CONCLUDED)

    def test_cannot_evolve_twice(self):
        solver = GeneticSolver(sample_catalog(), tiny_cfg(generations=1))
        solver.evolve()
        with self.assertRaises(RuntimeError):
            solver.evolve()

    def test_invalid_configuration_fails_before_seeding(self):
        bad = [
            dict(population_size=1),
            dict(tournament_size=0),
            dict(mutation_rate=1.5),
            dict(mutation_rate=-0.1),
            dict(generations=-1),
            dict(workers=0),
            dict(mutation_rate="0.1"),
            dict(population_size=10.5),
            dict(generations="20"),
            dict(tournament_size=True),
            dict(seed="abc"),
        ]
        for kw in bad:
            solver = GeneticSolver(sample_catalog(), tiny_cfg(**kw))
            with self.assertRaises(ConfigurationError):
                solver.evolve()
            self.assertEqual(solver.population, [])
            self.assertIsNone(solver.state)

    def test_empty_catalog_rejected(self):
        cat = Catalog(teachers=[ANA], rooms=[], time_slots=[MON_8], classes=[MATH])
        with self.assertRaises(ConfigurationError):
            GeneticSolver(cat, tiny_cfg()).seed()


if __name__ == "__main__":
    unittest.main()
