import math

import pytest

from econdash.charts import line_chart, to_vega_spec, update_frame, wide_frame
from econdash.sink import ChartStore, ChartUpdate, Dataset
from econdash.timeline import MISSING


def _update(surface="comparison", data_b=(MISSING, 2.0, 3.0)):
    return ChartUpdate(
        surface=surface,
        labels=("2020-01", "2020-02", "2020-03"),
        datasets=(Dataset("A", (1.0, 2.0, MISSING)), Dataset("B", data_b)),
    )


def test_chart_update_rejects_ragged_datasets():
    with pytest.raises(ValueError):
        ChartUpdate(surface="main", labels=("2020-01",), datasets=(Dataset("A", (1.0, 2.0)),))


def test_store_replaces_surface_in_place():
    store = ChartStore()
    first = _update()
    second = _update(data_b=(4.0, 5.0, 6.0))
    store.update(first)
    store.update(second)
    assert store["comparison"] is second
    assert store.update_counts == {"comparison": 2}
    assert store.surfaces == ("comparison",)
    assert "main" not in store
    assert store.get("main") is None


def test_payload_uses_none_for_missing():
    store = ChartStore()
    store.update(_update())
    payload = store.payload("comparison")
    assert payload["labels"] == ["2020-01", "2020-02", "2020-03"]
    assert payload["datasets"] == [
        {"name": "A", "data": [1.0, 2.0, None]},
        {"name": "B", "data": [None, 2.0, 3.0]},
    ]
    assert "spec" not in payload


def test_frames_mark_missing_as_nan():
    long_df = update_frame(_update())
    assert list(long_df.columns) == ["label", "series", "value"]
    assert len(long_df) == 6
    assert long_df["value"].isna().sum() == 2

    wide = wide_frame(_update())
    assert list(wide.columns) == ["label", "A", "B"]
    assert math.isnan(wide.loc[2, "A"])
    assert wide.loc[1, "B"] == 2.0


def test_line_chart_spec():
    spec = to_vega_spec(line_chart(_update()))
    assert "$schema" in spec
    assert spec.get("layer")  # hover points layered over the lines
    assert spec["layer"][0]["mark"]["interpolate"] == "linear"

    single = ChartUpdate(surface="main", labels=("2020-01",), datasets=(Dataset("A", (1.0,)),), y_title="Rate")
    spec = to_vega_spec(line_chart(single))
    assert spec["mark"]["type"] == "line"
    assert spec["mark"]["interpolate"] == "linear"
    assert spec["encoding"]["y"]["title"] == "Rate"


def test_store_spec_and_table():
    store = ChartStore()
    store.update(_update())
    assert isinstance(store.spec("comparison"), dict)
    assert store.table("comparison").shape == (3, 3)
    assert store.payload("comparison", include_spec=True)["spec"]["$schema"]
