"""Streamlit dashboard for pseudoshell.

Renders the CTF puzzle transcript (or the portfolio terminal) in the
browser and hosts the encryption visualizer. All behavior lives in the
pseudoshell package; this app only displays lines and forwards input.
"""

from __future__ import annotations

import html
from typing import List

import streamlit as st

from pseudoshell.command_handler import LineKind, OutputLine, PortfolioShell
from pseudoshell.puzzle import PuzzleSession, PuzzleShell, format_time
from pseudoshell.transcript import Transcript, export_as_json
from pseudoshell.visualizer import AES_256, ALGORITHM_STEPS, RSA_OAEP, VisualizerRun

LINE_COLORS = {
    LineKind.COMMAND: "#38bdf8",
    LineKind.OUTPUT: "#e2e8f0",
    LineKind.ERROR: "#ef4444",
    LineKind.ROOT_ANNOUNCE: "#f87171",
}


def get_transcript(mode: str) -> Transcript:
    key = f"transcript_{mode}"
    if key not in st.session_state:
        shell = PuzzleShell() if mode == "ctf" else PortfolioShell()
        st.session_state[key] = Transcript(shell)
    return st.session_state[key]


def render_lines(lines: List[OutputLine]) -> None:
    rows = []
    for line in lines:
        color = LINE_COLORS.get(line.kind, "#e2e8f0")
        weight = "bold" if line.kind is LineKind.ROOT_ANNOUNCE else "normal"
        rows.append(
            f"<div style='color:{color}; font-weight:{weight}; white-space:pre-wrap;'>"
            f"{html.escape(line.text) or '&nbsp;'}</div>"
        )
    st.markdown(
        "<div style='background:#0f172a; font-family:monospace; padding:12px; "
        "border-radius:6px; font-size:13px;'>" + "".join(rows) + "</div>",
        unsafe_allow_html=True,
    )


def terminal_tab(mode: str) -> None:
    transcript = get_transcript(mode)
    state = transcript.state

    if isinstance(state, PuzzleSession):
        puzzle = state.puzzle
        cols = st.columns(3)
        cols[0].metric("Stage", puzzle.stage.value)
        cols[1].metric(
            "Best", format_time(puzzle.best_elapsed_ms) if puzzle.best_elapsed_ms is not None else "--:--"
        )
        cols[2].metric("Status", "Solved" if puzzle.solved else "Active")
        if puzzle.take_solved_signal():
            st.balloons()

    render_lines(transcript.lines)

    placeholder = "password" if state.awaiting_secret else "type command..."
    with st.form(key=f"form_{mode}", clear_on_submit=True):
        raw = st.text_input(
            "Command",
            placeholder=placeholder,
            type="password" if state.awaiting_secret else "default",
        )
        submitted = st.form_submit_button("Run")
    if submitted and raw.strip():
        transcript.submit(raw)
        st.rerun()

    col1, col2 = st.columns(2)
    with col1:
        if st.button("Replay", key=f"replay_{mode}"):
            transcript.replay()
            st.rerun()
    with col2:
        st.download_button(
            "Export JSON",
            export_as_json(transcript),
            file_name=f"{mode}_transcript.json",
            key=f"export_{mode}",
        )


def visualizer_tab() -> None:
    algo = st.selectbox("Algorithm", [RSA_OAEP, AES_256])
    plaintext = st.text_area("Plaintext", "hello visitor", max_chars=120)
    steps = ALGORITHM_STEPS[algo]

    if st.button("Run"):
        progress = st.progress(0.0)
        status = st.empty()

        def on_step(index, step):
            progress.progress(index / len(steps))
            status.caption(f"{index + 1}. {step.label} - {step.desc}")

        result = VisualizerRun(algo, plaintext).run(on_step=on_step)
        progress.progress(1.0)
        status.caption(f"Complete in {round(result.elapsed_ms)} ms")
        st.code(result.cipher or "", language="text")


def main() -> None:
    st.set_page_config(page_title="pseudoshell", layout="wide")
    st.title("pseudoshell")

    ctf, portfolio, enc = st.tabs(["CTF Puzzle", "Portfolio", "Encryption"])
    with ctf:
        terminal_tab("ctf")
    with portfolio:
        terminal_tab("portfolio")
    with enc:
        visualizer_tab()


if __name__ == "__main__":
    main()
