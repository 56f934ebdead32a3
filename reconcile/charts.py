from __future__ import annotations

from typing import Any, Dict, Iterable

import altair as alt
import pandas as pd

from reconcile.stats import CategoryCount, MonthBucket

alt.data_transformers.disable_max_rows()


def to_vega_spec(chart: alt.TopLevelMixin) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    return chart.to_dict()


def revenue_chart(buckets: Iterable[MonthBucket]) -> alt.LayerChart:
    df = pd.DataFrame([b.to_dict() for b in buckets], columns=["month", "label", "revenue", "events", "leads"])
    base = alt.Chart(df).encode(x=alt.X("month:O", title="Month", sort=None, axis=alt.Axis(grid=False)))
    bars = base.mark_bar(opacity=0.8).encode(
        y=alt.Y("revenue:Q", title="Revenue received", axis=alt.Axis(format="~s", gridDash=[4, 4])),
        tooltip=["label", alt.Tooltip("revenue:Q", format=",.0f"), "events"],
    )
    line = base.mark_line(point={"filled": True, "size": 60}, color="#10B981").encode(
        y=alt.Y("events:Q", title="Events", axis=alt.Axis(format="d")),
        tooltip=["label", "events"],
    )
    return alt.layer(bars, line).resolve_scale(y="independent").properties(height=260)


def category_pie(counts: Iterable[CategoryCount], *, title: str = "Leads by event type") -> alt.Chart:
    df = pd.DataFrame([c.to_dict() for c in counts], columns=["name", "count"])
    return (
        alt.Chart(df)
        .mark_arc(innerRadius=50)
        .encode(
            theta=alt.Theta("count:Q"),
            color=alt.Color("name:N", title=None),
            tooltip=["name", "count"],
        )
        .properties(title=title)
    )


def status_bar(counts: Iterable[CategoryCount]) -> alt.Chart:
    df = pd.DataFrame([c.to_dict() for c in counts], columns=["name", "count"])
    return (
        alt.Chart(df)
        .mark_bar()
        .encode(
            x=alt.X("name:N", title="Payment status", sort=None),
            y=alt.Y("count:Q", title="Payments", axis=alt.Axis(format="d")),
            color=alt.Color(
                "name:N",
                legend=None,
                scale=alt.Scale(domain=["Received", "Pending", "Overdue"], range=["#16A34A", "#CA8A04", "#DC2626"]),
            ),
            tooltip=["name", "count"],
        )
    )
