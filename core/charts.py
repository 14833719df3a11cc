from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Sequence

import altair as alt
import pandas as pd

alt.data_transformers.disable_max_rows()

PALETTE = ["#7b6cff", "#ef8354", "#83d6a4", "#ffb86b", "#ff9f40", "#9966ff"]


def to_vega_spec(chart: alt.Chart) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    return chart.to_dict()


def _frame(records: Sequence[Mapping[str, Any]], columns: Sequence[str]) -> pd.DataFrame:
    df = pd.DataFrame.from_records(list(records))
    for col in columns:
        if col not in df.columns:
            df[col] = pd.Series(dtype=object)
    return df


def bar_chart(
    records: Sequence[Mapping[str, Any]],
    *,
    x: str = "label",
    y: str = "count",
    title: str = "",
    x_title: Optional[str] = None,
    y_title: str = "Count",
    sort: Optional[List[str]] = None,
) -> Dict[str, Any]:
    df = _frame(records, [x, y])
    hover = alt.selection_point(fields=[x], on="mouseover", empty="all")
    chart = (
        alt.Chart(df, title=title)
        .mark_bar(color=PALETTE[0])
        .encode(
            x=alt.X(f"{x}:N", title=x_title or x, sort=sort, axis=alt.Axis(grid=False)),
            y=alt.Y(f"{y}:Q", title=y_title, axis=alt.Axis(tickMinStep=1, gridDash=[4, 4], domain=False, ticks=False)),
            opacity=alt.condition(hover, alt.value(1), alt.value(0.6)),
            tooltip=[alt.Tooltip(x, title=x_title or x), alt.Tooltip(y, title=y_title)],
        )
        .add_params(hover)
    )
    return to_vega_spec(chart)


def counts_bar_chart(counts: Mapping[str, int], *, title: str = "") -> Dict[str, Any]:
    records = [{"label": label, "count": count} for label, count in counts.items()]
    return bar_chart(records, title=title, x_title="", sort=list(counts.keys()))


def donut_chart(
    records: Sequence[Mapping[str, Any]],
    *,
    theta: str = "count",
    color: str = "label",
    title: str = "",
    tooltip_extra: Optional[List[str]] = None,
) -> Dict[str, Any]:
    df = _frame(records, [theta, color])
    tooltip = [alt.Tooltip(color, title=color.capitalize()), alt.Tooltip(theta, title=theta.capitalize())]
    for extra in tooltip_extra or []:
        if extra in df.columns:
            tooltip.append(alt.Tooltip(extra, format=".1f"))
    chart = (
        alt.Chart(df, title=title)
        .mark_arc(innerRadius=60, outerRadius=90)
        .encode(
            theta=alt.Theta(f"{theta}:Q"),
            color=alt.Color(f"{color}:N", scale=alt.Scale(range=PALETTE)),
            tooltip=tooltip,
        )
    )
    return to_vega_spec(chart)


def stacked_percent_chart(
    records: Sequence[Mapping[str, Any]],
    *,
    index: str,
    columns: Sequence[str],
    title: str = "",
) -> Dict[str, Any]:
    df = _frame(records, [index, *columns])
    long = df.melt(id_vars=[index], value_vars=list(columns), var_name="series", value_name="percent")
    chart = (
        alt.Chart(long, title=title)
        .mark_bar()
        .encode(
            x=alt.X(f"{index}:O", title=index, axis=alt.Axis(grid=False)),
            y=alt.Y("percent:Q", title="Percent", stack="zero", axis=alt.Axis(format=".0f")),
            color=alt.Color("series:N", sort=list(columns), scale=alt.Scale(range=PALETTE)),
            tooltip=[alt.Tooltip(index), alt.Tooltip("series"), alt.Tooltip("percent", format=".1f")],
        )
    )
    return to_vega_spec(chart)
