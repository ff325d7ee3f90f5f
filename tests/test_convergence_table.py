import numpy as np
import pandas as pd
import pytest

from quant_pde.diagnostics import convergence_table, to_frame
from quant_pde.models.bs import bs_price

COLUMNS = ["refinement", "nodes", "steps", "price", "change", "ratio", "abs_err", "rel_err"]


def test_table_layout(make_inputs) -> None:
    p = make_inputs(S=100.0, K=100.0, r=0.04, sigma=0.2, T=1.0, exercises=10)
    df = convergence_table(p, steps=10, max_refinement=2)

    assert isinstance(df, pd.DataFrame)
    assert set(COLUMNS) <= set(df.columns)
    assert df["refinement"].tolist() == [0, 1, 2]
    assert df["nodes"].tolist() == [34, 67, 133]
    assert df["steps"].tolist() == [10, 20, 40]
    assert np.isnan(df["change"].iloc[0])
    assert np.isnan(df["ratio"].iloc[1])
    assert df["abs_err"].isna().all()


def test_errors_against_reference(make_inputs) -> None:
    p = make_inputs(S=100.0, K=100.0, r=0.04, sigma=0.2, T=1.0)
    ref = bs_price(p)
    df = convergence_table(p, exercises=0, steps=25, max_refinement=1, reference=ref)

    np.testing.assert_allclose(df["abs_err"], np.abs(df["price"] - ref))
    np.testing.assert_allclose(df["rel_err"], df["abs_err"] / ref)
    assert df["change"].iloc[1] == pytest.approx(abs(df["price"].iloc[1] - df["price"].iloc[0]))


def test_negative_refinement_rejected(make_inputs) -> None:
    p = make_inputs(S=100.0, K=100.0, r=0.04, sigma=0.2, T=1.0)
    with pytest.raises(ValueError, match="nonnegative"):
        convergence_table(p, max_refinement=-1)


def test_to_frame_rejects_unknown_items() -> None:
    assert to_frame([{"a": 1}, {"a": 2}])["a"].tolist() == [1, 2]
    with pytest.raises(TypeError):
        to_frame([object()])
