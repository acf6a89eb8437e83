# app.py
import os
import streamlit as st
import pandas as pd

from timetable_ga.config import GAConfig, ConfigurationError, load_config
from timetable_ga.data_loader import load_catalog, sample_catalog
from timetable_ga.ga import GeneticSolver
from timetable_ga.evaluation import evaluate_detailed
from timetable_ga.report import chromosome_to_dataframe, schedule_html

# --- CONFIGURACIÓN DE PÁGINA ---
st.set_page_config(page_title="Horarios con Algoritmo Genético", layout="wide", initial_sidebar_state="expanded")

st.markdown("""
    <style>
    .stButton>button {
        width: 100%;
        background-color: #ff4b4b;
        color: white;
        font-weight: bold;
        height: 50px;
    }
    .schedule-table {
        width: 100%;
        border-collapse: collapse;
        font-size: 12px;
    }
    </style>
    """, unsafe_allow_html=True)


def sidebar_config() -> GAConfig:
    base = load_config("config.yaml")
    with st.sidebar:
        st.title("🧬 Parámetros")
        st.markdown("---")
        base.population_size = st.number_input("Tamaño de población", min_value=2, value=base.population_size, step=2)
        base.generations = st.number_input("Generaciones", min_value=0, value=base.generations)
        base.tournament_size = st.number_input("Tamaño de torneo", min_value=1, value=base.tournament_size)
        base.mutation_rate = st.slider("Tasa de mutación", 0.0, 1.0, float(base.mutation_rate), 0.01)
        base.conflict_weight = st.number_input("Peso de choque", min_value=0, value=base.conflict_weight)
        base.seed = st.number_input("Semilla", min_value=0, value=base.seed if base.seed is not None else 42)
        base.workers = st.number_input("Hilos de evaluación", min_value=1, value=base.workers)
        st.markdown("---")
        st.info("Sistema de Optimización de Horarios\nAlgoritmo Genético")
    return base


def load_selected_catalog(source: str):
    if source == "Catálogo de ejemplo":
        return sample_catalog()
    return load_catalog("data")


def main():
    cfg = sidebar_config()
    if "history" not in st.session_state: st.session_state.history = []
    if "best" not in st.session_state: st.session_state.best = None

    st.header("📋 Asignación de Horarios")
    options = ["Catálogo de ejemplo"]
    if os.path.isdir("data"):
        options.append("CSV en data/")
    source = st.radio("Origen de datos:", options, horizontal=True)

    if st.button("🚀 EJECUTAR ALGORITMO GENÉTICO"):
        try:
            catalog = load_selected_catalog(source)
            solver = GeneticSolver(catalog, cfg)
            progress = st.progress(0.0)
            total = max(cfg.generations, 1)

            def on_generation(entry):
                progress.progress(min(entry["generation"] / total, 1.0))

            with st.spinner("Evolucionando población..."):
                best = solver.evolve(on_generation=on_generation)
            progress.progress(1.0)
            st.session_state.best = best
            st.session_state.history = solver.history
            st.session_state.conflict_weight = cfg.conflict_weight
        except ConfigurationError as e:
            st.error(f"Configuración inválida: {e}")

    best = st.session_state.best
    if best is None:
        st.warning("Ejecute el algoritmo para ver resultados.")
        return

    c1, c2, c3 = st.columns(3)
    c1.metric("Fitness", best.score)
    c2.metric("Generación del mejor", best.generation)
    c3.metric("Generaciones ejecutadas", len(st.session_state.history) - 1)

    st.markdown("##### Evolución del fitness")
    hist = pd.DataFrame(st.session_state.history)
    st.line_chart(hist.set_index("generation")[["best_score", "best_ever", "mean_score"]])

    st.markdown("##### Horario")
    st.markdown(schedule_html(best.chromosome, best.score), unsafe_allow_html=True)

    st.markdown("##### Reporte de Penalidades")
    res = evaluate_detailed(best.chromosome, st.session_state.conflict_weight)
    if res.violations:
        for v in res.violations:
            st.markdown(f"- {v}")
    else:
        st.success("Horario sin conflictos")

    csv = chromosome_to_dataframe(best.chromosome).to_csv(index=False).encode("utf-8")
    st.download_button("📥 Descargar CSV", data=csv, file_name="horario_final.csv", mime="text/csv")


if __name__ == "__main__":
    main()
