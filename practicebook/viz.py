from __future__ import annotations
from pathlib import Path


def save_graph_mermaid(app, out_path: str | Path = "artifacts/booking_graph.mmd") -> str:
    """
    Save the compiled booking graph as Mermaid text (no Graphviz needed).
    """
    out_path = Path(out_path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(app.get_graph().draw_mermaid(), encoding="utf-8")
    return str(out_path)
