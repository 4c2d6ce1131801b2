from __future__ import annotations

from typing import Any, Dict, List, Sequence, Tuple

import altair as alt
import pandas as pd

from bloodsugar.config import REFERENCE, ReferenceThresholds

alt.data_transformers.disable_max_rows()

BLUE = "#2563eb"
GREEN = "#10b981"
AMBER = "#f59e0b"
RED = "#ef4444"

MAIN_DOMAIN = (80, 320)
FASTING_DOMAIN = (80, 280)
RANDOM_DOMAIN = (80, 320)

ReferenceLine = Tuple[float, str, str]


def to_vega_spec(chart: alt.TopLevelMixin) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    return chart.to_dict()


def main_reference_lines(t: ReferenceThresholds = REFERENCE) -> List[ReferenceLine]:
    return [
        (t.normal_fasting, "Normal Fasting", GREEN),
        (t.pre_diabetic_random, "Pre-diabetic", AMBER),
        (t.diabetic_random, "Diabetic", RED),
    ]


def fasting_reference_lines(t: ReferenceThresholds = REFERENCE) -> List[ReferenceLine]:
    return [(t.normal_fasting, "Normal Fasting", GREEN), (t.diabetic_fasting, "Diabetic Fasting", RED)]


def random_reference_lines(t: ReferenceThresholds = REFERENCE) -> List[ReferenceLine]:
    return [(t.pre_diabetic_random, "Pre-diabetic", AMBER), (t.diabetic_random, "Diabetic", RED)]


def _y_domain(frame: pd.DataFrame, domain: Tuple[float, float]) -> List[float]:
    # Stretch the fixed domain rather than clipping readings outside it.
    lo, hi = domain
    if not frame.empty:
        lo = min(lo, float(frame["sugar_level"].min()))
        hi = max(hi, float(frame["sugar_level"].max()))
    return [lo, hi]


def _tooltip() -> List[alt.Tooltip]:
    return [
        alt.Tooltip("date_label:N", title="Date"),
        alt.Tooltip("sugar_level:Q", title="Sugar Level (mg/dL)"),
        alt.Tooltip("type:N", title="Type"),
        alt.Tooltip("time:N", title="Time"),
        alt.Tooltip("notes:N", title="Notes"),
    ]


def reference_rules(lines: Sequence[ReferenceLine]) -> alt.Chart:
    ref = pd.DataFrame([{"value": v, "label": f"{name} ({v:g})", "color": c} for v, name, c in lines])
    return (
        alt.Chart(ref)
        .mark_rule(strokeDash=[5, 5], strokeWidth=1)
        .encode(
            y=alt.Y("value:Q", title="mg/dL"),
            color=alt.Color(
                "label:N",
                scale=alt.Scale(domain=ref["label"].tolist(), range=ref["color"].tolist()),
                legend=alt.Legend(title="Reference", orient="bottom"),
            ),
            tooltip=[alt.Tooltip("label:N", title="Reference")],
        )
    )


def readings_chart(
    frame: pd.DataFrame,
    *,
    kind: str = "line",
    color: str = BLUE,
    domain: Tuple[float, float] = MAIN_DOMAIN,
    lines: Sequence[ReferenceLine] = (),
    title: str = "",
    height: int = 320,
) -> alt.LayerChart:
    x = alt.X(
        "display_label:N",
        sort=frame["display_label"].tolist(),
        title=None,
        axis=alt.Axis(labelAngle=-45, grid=False),
    )
    y = alt.Y(
        "sugar_level:Q",
        title="mg/dL",
        scale=alt.Scale(domain=_y_domain(frame, domain)),
        axis=alt.Axis(gridDash=[3, 3]),
    )
    base = alt.Chart(frame)
    if kind == "bar":
        marks = base.mark_bar(color=color)
    else:
        marks = base.mark_line(color=color, strokeWidth=2, point={"filled": True, "size": 60, "color": color})
    layers = [marks.encode(x=x, y=y, tooltip=_tooltip())]
    if lines:
        layers.append(reference_rules(lines))
    return alt.layer(*layers).properties(title=title, height=height)


def main_chart(frame: pd.DataFrame, kind: str = "line", thresholds: ReferenceThresholds = REFERENCE) -> alt.LayerChart:
    return readings_chart(
        frame,
        kind=kind,
        color=BLUE,
        domain=MAIN_DOMAIN,
        lines=main_reference_lines(thresholds),
        title="Blood Sugar Levels Over Time",
        height=384,
    )


def fasting_chart(frame: pd.DataFrame, thresholds: ReferenceThresholds = REFERENCE) -> alt.LayerChart:
    subset = frame[frame["type"] == "FASTING"]
    return readings_chart(
        subset,
        color=BLUE,
        domain=FASTING_DOMAIN,
        lines=fasting_reference_lines(thresholds),
        title=f"Fasting Levels ({len(subset)} readings)",
        height=256,
    )


def random_chart(frame: pd.DataFrame, thresholds: ReferenceThresholds = REFERENCE) -> alt.LayerChart:
    subset = frame[frame["type"] == "RANDOM"]
    return readings_chart(
        subset,
        color=GREEN,
        domain=RANDOM_DOMAIN,
        lines=random_reference_lines(thresholds),
        title=f"Random Levels ({len(subset)} readings)",
        height=256,
    )


def build_charts(frame: pd.DataFrame, view: str = "line", thresholds: ReferenceThresholds = REFERENCE) -> Dict[str, Any]:
    return {
        "main": to_vega_spec(main_chart(frame, kind=view, thresholds=thresholds)),
        "fasting": to_vega_spec(fasting_chart(frame, thresholds=thresholds)),
        "random": to_vega_spec(random_chart(frame, thresholds=thresholds)),
    }
