import io, zipfile
import re
from pathlib import Path

import streamlit as st

import puzzle_engine as eng
import svg_renderer as svg


def load_css(path: str | Path) -> None:
    css_path = Path(path)
    if not css_path.exists():
        return
    css = css_path.read_text(encoding="utf-8")
    st.markdown(f"<style>{css}</style>", unsafe_allow_html=True)


# ---- preview helper: scale an SVG to a target pixel width (keeps aspect) ----

def _scale_svg_for_preview(svg_text: str, target_width_px: int) -> tuple[str, int]:
    """
    Returns (scaled_svg_text, new_height_px).
    Only used for UI preview; original SVGs stay full size for PNG/PDF/PPTX.
    """
    s = svg_text
    m = re.search(r'viewBox="0\s+0\s+([\d.]+)\s+([\d.]+)"', s)
    if not m:
        return s, 600  # fallback
    vw, vh = float(m.group(1)), float(m.group(2))

    scale = max(0.05, float(target_width_px) / max(1.0, vw))
    new_h = max(50, int(round(vh * scale)))

    # rewrite width/height only on the <svg ...> tag
    s = re.sub(r'(<svg\b[^>]*\bwidth=")[^"]+(")',  rf'\g<1>{int(target_width_px)}\g<2>', s, count=1)
    s = re.sub(r'(<svg\b[^>]*\bheight=")[^"]+(")', rf'\g<1>{new_h}\g<2>',            s, count=1)
    if 'preserveAspectRatio' not in s[:400]:
        s = re.sub(r'<svg\b', '<svg preserveAspectRatio="xMidYMid meet"', s, count=1)
    return s, new_h


def _ui_log(msg: str) -> None:
    st.session_state.setdefault("log", []).append(msg)


st.set_page_config(page_title="Word Search Generator", layout="wide")
load_css(Path(__file__).with_name("styles.css"))
st.title("Word Search Generator")

eng.set_logger(_ui_log)
svg.set_logger(_ui_log)

# Session state is the only mutable state; the engine gets everything as arguments.
st.session_state.setdefault("wordlist", None)
st.session_state.setdefault("upload_id", None)
st.session_state.setdefault("selected", [])
st.session_state.setdefault("result", None)
st.session_state.setdefault("show_solution", False)


# --- Controls in the sidebar ---
with st.sidebar:
    tab_create, tab_settings = st.tabs(["Create Puzzle", "Settings"])

    # ---------------------------
    # TAB 1: Create Puzzle
    # ---------------------------
    with tab_create:
        csv_file = st.file_uploader("CSV: Word, Select (TRUE/FALSE)", type=["csv"])
        puzzle_name = st.text_input("Puzzle name (optional)", "")
        seed = st.text_input("Seed (optional)", "")

    # ---------------------------
    # TAB 2: Settings
    # ---------------------------
    with tab_settings:
        st.caption("Grid")
        grid_size = st.number_input("Grid size", 5, 30, eng.GRID_SIZE, format="%d")
        max_secondary = st.number_input("Max other words", 0, 100, 20, format="%d")

        r1c1, r1c2 = st.columns(2)
        with r1c1:
            priority_attempts = st.number_input("Tries (selected)", 1, 5000, 500, format="%d")
        with r1c2:
            secondary_attempts = st.number_input("Tries (other)", 1, 5000, 100, format="%d")

        st.caption("Output formats")
        make_pdf  = st.checkbox("Also make PDF", value=False)
        make_pptx = st.checkbox("Also make PPTX (simple insert)", value=False)

        st.caption("Preview")
        mark_style = st.selectbox("Solution marks", ["highlight", "circle"])
        size_label = st.select_slider("Preview size", options=["Small", "Medium", "Large"], value="Medium")
        PREVIEW_W = {"Small": 420, "Medium": 560, "Large": 720}[size_label]


# --- Read CSV (only when a new file arrives) ---
if csv_file is not None and st.session_state.upload_id != csv_file.file_id:
    try:
        wl = eng.read_wordlist_csv(io.TextIOWrapper(csv_file, encoding="utf-8-sig"))
    except (OSError, UnicodeDecodeError) as e:
        st.error("Could not read CSV")
        st.exception(e)
        st.stop()
    st.session_state.wordlist = wl
    st.session_state.upload_id = csv_file.file_id
    st.session_state.selected = sorted(wl.priority)
    st.session_state.result = None

wordlist = st.session_state.wordlist
if wordlist is None:
    st.info("Upload a CSV with one word per row and TRUE/FALSE in the second column.")
    st.stop()

if not wordlist.words:
    st.error("No valid words found (letters A-Z only, at least 2 letters).")
    st.stop()


# --- Word selection ---
st.subheader(f"Select words to find ({len(st.session_state.selected)} selected)")
b1, b2, _ = st.columns([1, 1, 6])
with b1:
    if st.button("Select All"):
        st.session_state.selected = list(wordlist.words)
with b2:
    if st.button("Clear All"):
        st.session_state.selected = []

st.multiselect(f"{len(wordlist.words)} words loaded", options=list(wordlist.words), key="selected")

go = st.button("Generate Word Search", type="primary")


if go:
    config = eng.GeneratorConfig(
        size=int(grid_size),
        max_secondary=int(max_secondary),
        priority_attempts=int(priority_attempts),
        secondary_attempts=int(secondary_attempts),
        seed=seed or None,
    )
    try:
        st.session_state.result = eng.generate_puzzle(
            wordlist.words, st.session_state.selected, config=config,
        )
    except eng.ConfigurationError as e:
        st.error(f"Cannot generate: {e}")
        st.stop()
    st.session_state.show_solution = False

result = st.session_state.result
if result is None:
    st.stop()


# --- Render ---
look = svg.Appearance(solution_mark_style=mark_style)
try:
    puz_svg = svg.render_puzzle_svg(result, look, title=puzzle_name)
    sol_svg = svg.render_solution_svg(result, look, title=puzzle_name)
except Exception as e:
    st.error("Puzzle rendering failed")
    st.exception(e)
    st.stop()

missing = result.unplaced_priority()
if missing:
    st.warning(f"Could not place {len(missing)} selected word(s): {', '.join(missing)}")

st.session_state.show_solution = st.toggle("Show Solution", value=st.session_state.show_solution)
shown = sol_svg if st.session_state.show_solution else puz_svg
preview, h = _scale_svg_for_preview(shown, PREVIEW_W)
st.components.v1.html(preview, height=h + 6, scrolling=False)

st.subheader(f"Words to Find ({len(result.words_to_find())})")
st.write(", ".join(result.words_to_find()) or "None placed.")


# --- Downloads ---
try:
    from cairosvg import svg2png, svg2pdf
except Exception as e:
    st.error("cairosvg not installed or failed to import")
    st.exception(e)
    st.stop()

puz_name = svg.export_basename(puzzle_name, "puzzle")
sol_name = svg.export_basename(puzzle_name, "solution")

try:
    puz_png = svg2png(bytestring=puz_svg.encode("utf-8"))
    sol_png = svg2png(bytestring=sol_svg.encode("utf-8"))
except Exception as e:
    st.error("PNG conversion failed")
    st.exception(e)
    st.stop()

d1, d2, d3 = st.columns(3)
with d1:
    st.download_button("Download Puzzle", data=puz_png, file_name=f"{puz_name}.png", mime="image/png")
with d2:
    st.download_button("Download Solution", data=sol_png, file_name=f"{sol_name}.png", mime="image/png")

with d3:
    try:
        mem = io.BytesIO()
        with zipfile.ZipFile(mem, "w", zipfile.ZIP_DEFLATED) as zf:
            zf.writestr(f"{puz_name}.svg", puz_svg)
            zf.writestr(f"{sol_name}.svg", sol_svg)
            zf.writestr(f"{puz_name}.png", puz_png)
            zf.writestr(f"{sol_name}.png", sol_png)

            if make_pdf:
                zf.writestr(f"{puz_name}.pdf", svg2pdf(bytestring=puz_svg.encode("utf-8")))
                zf.writestr(f"{sol_name}.pdf", svg2pdf(bytestring=sol_svg.encode("utf-8")))

            if make_pptx:
                from pptx import Presentation
                from pptx.util import Inches

                prs = Presentation()
                blank = prs.slide_layouts[6]
                for png in (puz_png, sol_png):
                    slide = prs.slides.add_slide(blank)
                    slide.shapes.add_picture(io.BytesIO(png), Inches(0.5), Inches(0.5), height=Inches(6.5))
                out = io.BytesIO()
                prs.save(out)
                zf.writestr(f"{puz_name}.pptx", out.getvalue())

        mem.seek(0)
        st.download_button("Download ZIP", data=mem.read(), file_name=f"{puz_name}.zip", mime="application/zip")
    except Exception as e:
        st.error("Failed to package outputs")
        st.exception(e)
        st.stop()

with st.expander("Log"):
    st.code("\n".join(st.session_state.get("log", [])[-50:]) or "(empty)")
