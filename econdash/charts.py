from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict

import altair as alt
import numpy as np
import pandas as pd

from econdash.timeline import is_missing

if TYPE_CHECKING:
    from econdash.sink import ChartUpdate

alt.data_transformers.disable_max_rows()


def to_vega_spec(chart: alt.Chart) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    return chart.to_dict()


def update_frame(update: "ChartUpdate") -> pd.DataFrame:
    """Long-format frame (label, series, value) with NaN where a series has no observation."""
    rows = []
    for dataset in update.datasets:
        for label, value in zip(update.labels, dataset.data):
            rows.append(
                {
                    "label": label,
                    "series": dataset.name,
                    "value": np.nan if is_missing(value) else float(value),
                }
            )
    return pd.DataFrame(rows, columns=["label", "series", "value"])


def wide_frame(update: "ChartUpdate") -> pd.DataFrame:
    """One row per label, one column per dataset."""
    frame = pd.DataFrame({"label": list(update.labels)})
    for dataset in update.datasets:
        frame[dataset.name] = [np.nan if is_missing(v) else float(v) for v in dataset.data]
    return frame


def line_chart(update: "ChartUpdate") -> alt.Chart:
    df = update_frame(update)
    base = alt.Chart(df).encode(
        x=alt.X("label:O", title=update.x_title, sort=list(update.labels), axis=alt.Axis(labelOverlap=True)),
        y=alt.Y("value:Q", title=update.y_title),
        color=alt.Color("series:N", title=None, sort=[d.name for d in update.datasets]),
        tooltip=[
            alt.Tooltip("label:O", title="Date"),
            alt.Tooltip("series:N", title="Series"),
            alt.Tooltip("value:Q", title="Value", format=",.2f"),
        ],
    )
    line = base.mark_line(strokeWidth=2, interpolate="linear")
    if len(update.datasets) < 2:
        return line

    hover = alt.selection_point(fields=["label"], on="mouseover", nearest=True, empty=False)
    points = base.mark_point(filled=True).encode(
        opacity=alt.condition(hover, alt.value(1), alt.value(0)),
    ).add_params(hover)
    return alt.layer(line, points)
